""" In-memory octet streams shared by the packet parser and the blob codec.
    Nothing here touches files; callers hand over fully read buffers.
"""

from struct import pack, unpack

from .exceptions import UnexpectedEndOfStream

class InputStream(object):
    """ Bounds-checked forward cursor over a byte buffer """
    def __init__(self, data):
        self.data = bytes(data)
        self.pos = 0

    def remaining(self):
        return len(self.data) - self.pos

    def eof(self):
        return self.pos >= len(self.data)

    def tell(self):
        return self.pos

    def read_bytes(self, count):
        if count < 0 or count > self.remaining():
            raise UnexpectedEndOfStream("wanted %d octets at offset %d, only %d left" % (count, self.pos, self.remaining()))
        chunk = self.data[self.pos:self.pos + count]
        self.pos += count
        return chunk

    def read_byte(self):
        return ord(self.read_bytes(1))

    def peek_byte(self):
        if self.eof():
            raise UnexpectedEndOfStream("wanted 1 octet at offset %d, none left" % self.pos)
        return self.data[self.pos]

    def read_unpacked(self, count, fmt):
        """ http://docs.python.org/library/struct.html """
        unpacked = unpack(fmt, self.read_bytes(count))
        return unpacked[0] # unpack returns tuple

    def read_mpi(self):
        """ http://tools.ietf.org/html/rfc4880#section-3.2 """
        length = self.read_unpacked(2, '!H') # length in bits
        length = (length + 7) // 8 # length in bytes
        return self.read_bytes(length)

    def rest(self):
        return self.read_bytes(self.remaining())

class OutputStream(object):
    """ Growable output buffer """
    def __init__(self):
        self._buf = bytearray()

    def write(self, data):
        self._buf += data
        return len(data)

    def write_unpacked(self, fmt, value):
        return self.write(pack(fmt, value))

    def getvalue(self):
        return bytes(self._buf)

    def __len__(self):
        return len(self._buf)
