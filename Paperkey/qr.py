""" Recover RAW secrets from the error-corrected data of a QR code.

    Scanners hand back the codewords of a byte mode segment:

        4 bits   mode indicator
        16 bits  big endian payload length
        n octets payload

    Nothing after the payload (terminator, padding) is looked at. Only the
    16-bit length form used for large byte segments is understood.
"""

from .exceptions import TruncatedBlob

BYTE_MODE = 0x4

class BitReader(object):
    """ MSB-first bit cursor over a byte string """
    def __init__(self, data):
        self.data = bytearray(data)
        self.pos = 0

    def remaining(self):
        return len(self.data) * 8 - self.pos

    def read_bits(self, count):
        if count > self.remaining():
            raise TruncatedBlob("wanted %d bits at bit %d, only %d left" % (count, self.pos, self.remaining()))
        value = 0
        for i in range(count):
            bit = (self.data[self.pos // 8] >> (7 - self.pos % 8)) & 1
            value = (value << 1) | bit
            self.pos += 1
        return value

def decode_byte_mode(data):
    """ Returns the segment payload; the mode nibble is read but not checked """
    if not data:
        raise TruncatedBlob("no QR code data")
    reader = BitReader(data)
    reader.read_bits(4) # mode indicator
    length = reader.read_bits(16)
    return bytes(bytearray(reader.read_bits(8) for i in range(length)))

def encode_byte_mode(payload):
    """ Inverse of decode_byte_mode, for feeding a QR encoder """
    if len(payload) > 0xFFFF:
        raise ValueError("payload too long for one byte mode segment (%d octets)" % len(payload))
    bits = (BYTE_MODE << 16) | len(payload)
    value = (bits << (8 * len(payload))) | int.from_bytes(payload, 'big')
    total = 20 + 8 * len(payload)
    padding = -total % 8
    return (value << padding).to_bytes((total + padding) // 8, 'big')
