""" OpenPGP packet framing and just enough of the key packet layout to find
    where the secret material starts.
    http://tools.ietf.org/html/rfc4880#section-4
    http://tools.ietf.org/html/rfc4880#section-5.5
"""

from struct import pack
import hashlib

from .exceptions import EncryptedSecretKeyUnsupported, MalformedStream
from .stream import InputStream

# http://tools.ietf.org/html/rfc4880#section-4.3
SIGNATURE = 2
SECRET_KEY = 5
PUBLIC_KEY = 6
SECRET_SUBKEY = 7
TRUST = 12
USER_ID = 13
PUBLIC_SUBKEY = 14
USER_ATTRIBUTE = 17

SECRET_TAGS = (SECRET_KEY, SECRET_SUBKEY)
PUBLIC_TAGS = (PUBLIC_KEY, PUBLIC_SUBKEY)
KEY_TAGS = SECRET_TAGS + PUBLIC_TAGS

SECRET_FOR_PUBLIC = {
    PUBLIC_KEY: SECRET_KEY,
    PUBLIC_SUBKEY: SECRET_SUBKEY,
}

FINGERPRINT_LENGTH = 20

def checksum(data):
    """ Two-octet additive checksum over unencrypted secret MPIs.
        http://tools.ietf.org/html/rfc4880#section-5.5.3
    """
    return sum(bytearray(data)) % 65536

class Packet(object):
    """ One OpenPGP packet. Bodies are kept as opaque bytes; only key
        packets are ever looked into (see KeyPacket).
        http://tools.ietf.org/html/rfc4880#section-4.1
    """
    def __init__(self, tag, data = b'', header_format = 'new'):
        self.tag = tag
        self.data = bytes(data)
        self.header_format = header_format

    @property
    def length(self):
        return len(self.data)

    @classmethod
    def parse(cls, input):
        """ Read one packet (header and body) from an InputStream.
            http://tools.ietf.org/html/rfc4880#section-4.2
        """
        offset = input.tell()
        first = input.read_byte()
        if not first & 0x80:
            raise MalformedStream("invalid packet tag octet 0x%02X at offset %d" % (first, offset))

        if first & 0x40:
            tag = first & 63
            header_format = 'new'
        else:
            tag = (first >> 2) & 15
            header_format = 'old'
        if tag == 0:
            raise MalformedStream("reserved packet tag 0 at offset %d" % offset)

        if header_format == 'new':
            data = cls.read_new_format_body(tag, input)
        else:
            data = cls.read_old_format_body(first & 3, input)
        return cls(tag, data, header_format)

    @classmethod
    def parse_new_length(cls, input):
        """ Returns (length, partial).
            http://tools.ietf.org/html/rfc4880#section-4.2.2
        """
        length = input.read_byte()
        if length < 192: # One octet length
            return (length, False)
        if length < 224: # Two octet length
            return (((length - 192) << 8) + input.read_byte() + 192, False)
        if length == 255: # Five octet length
            return (input.read_unpacked(4, '!L'), False)
        return (1 << (length & 0x1F), True) # Partial body length

    @classmethod
    def read_new_format_body(cls, tag, input):
        length, partial = cls.parse_new_length(input)
        if partial and tag in KEY_TAGS:
            raise MalformedStream("key packet (tag %d) with a partial body length" % tag)
        chunks = [input.read_bytes(length)]
        while partial:
            length, partial = cls.parse_new_length(input)
            chunks.append(input.read_bytes(length))
        return b''.join(chunks)

    @classmethod
    def read_old_format_body(cls, length_type, input):
        """ http://tools.ietf.org/html/rfc4880#section-4.2.1 """
        if length_type == 0: # One octet length
            length = input.read_byte()
        elif length_type == 1: # Two octet length
            length = input.read_unpacked(2, '!H')
        elif length_type == 2: # Four octet length
            length = input.read_unpacked(4, '!L')
        else: # Indeterminate, the body is the rest of the stream
            return input.rest()
        return input.read_bytes(length)

    def header(self):
        """ Always a new format header with the shortest length field """
        length = len(self.data)
        tag = pack('!B', self.tag | 0xC0) # First two bits are 1 for new packet format
        if length < 192:
            size = pack('!B', length)
        elif length < 8384:
            length -= 192
            size = pack('!BB', (length >> 8) + 192, length & 0xFF)
        else:
            size = pack('!B', 255) + pack('!L', length)
        return tag + size

    def to_bytes(self):
        return self.header() + self.data

    def __repr__(self):
        return "<Packet tag=%d length=%d %s>" % (self.tag, len(self.data), self.header_format)

    def __eq__(self, other):
        if type(other) is type(self):
            return (self.tag, self.data) == (other.tag, other.data)
        return False

    def __ne__(self, other):
        return not self.__eq__(other)

def parse_packets(data):
    """ Iterate over the packets of a binary keyring """
    input = InputStream(data)
    while not input.eof():
        yield Packet.parse(input)

class KeyPacket(object):
    """ Public-Key, Public-Subkey, Secret-Key or Secret-Subkey packet body.

        The public fields are only scanned to learn where they end; the
        bytes are carried over verbatim.
        http://tools.ietf.org/html/rfc4880#section-5.5.2
    """
    def __init__(self, packet):
        if packet.tag not in KEY_TAGS:
            raise ValueError("packet tag %d is not a key packet" % packet.tag)
        self.packet = packet
        self.version = None
        self.key_algorithm = None
        self.mpis = []
        self._public_length = None

    def is_secret(self):
        return self.packet.tag in SECRET_TAGS

    def scan_public_fields(self):
        input = InputStream(self.packet.data)
        self.version = input.read_byte()
        if self.version == 3:
            input.read_bytes(4 + 2) # timestamp, days of validity
        elif self.version == 4:
            input.read_bytes(4) # timestamp
        else:
            raise MalformedStream("unsupported key packet version %d" % self.version)

        self.key_algorithm = input.read_byte()
        try:
            fields = self.key_fields[self.key_algorithm]
        except KeyError:
            raise MalformedStream("unsupported public key algorithm %d" % self.key_algorithm)

        self.mpis = []
        for field in fields:
            if field in ('oid', 'kdf'): # one octet length, then the value
                input.read_bytes(input.read_byte())
            else:
                self.mpis.append(input.read_mpi())
        return input.tell()

    def public_length(self):
        if self._public_length is None:
            if self.is_secret():
                self._public_length = self.scan_public_fields()
            else:
                self._public_length = len(self.packet.data)
        return self._public_length

    def public_prefix(self):
        return self.packet.data[:self.public_length()]

    def split(self):
        """ Returns (public_prefix, s2k_usage, secret_material) """
        if not self.is_secret():
            raise ValueError("public key packets hold no secret material")
        data = self.packet.data
        offset = self.public_length()
        if offset >= len(data):
            raise MalformedStream("secret key packet ends before its string-to-key usage octet")
        s2k_usage = data[offset]
        if s2k_usage != 0:
            raise EncryptedSecretKeyUnsupported(s2k_usage)
        secret_material = data[offset + 1:]
        if len(secret_material) < 2:
            raise MalformedStream("secret key packet is too short to hold a checksum")
        return (data[:offset], s2k_usage, secret_material)

    def fingerprint(self):
        """ Raw 20 octet fingerprint; v3 MD5 fingerprints are zero padded.
            http://tools.ietf.org/html/rfc4880#section-12.2
        """
        prefix = self.public_prefix()
        version = prefix[0] if prefix else None
        if version == 4:
            return hashlib.sha1(pack('!B', 0x99) + pack('!H', len(prefix)) + prefix).digest()
        elif version == 3:
            if not self.mpis:
                self.scan_public_fields()
            digest = hashlib.md5(b''.join(self.mpis[:2])).digest()
            return digest + b'\0' * (FINGERPRINT_LENGTH - len(digest))
        raise MalformedStream("unsupported key packet version %r" % version)

    key_fields = {
        1: ['n', 'e'],                # RSA
        2: ['n', 'e'],                # RSA Encrypt-Only
        3: ['n', 'e'],                # RSA Sign-Only
       16: ['p', 'g', 'y'],           # ELG-E
       17: ['p', 'q', 'g', 'y'],      # DSA
       18: ['oid', 'q', 'kdf'],       # ECDH
       19: ['oid', 'q'],              # ECDSA
       20: ['p', 'g', 'y'],           # ELG (sign and encrypt)
       22: ['oid', 'q'],              # EdDSA
    }

def split_secret_key(packet):
    return KeyPacket(packet).split()
