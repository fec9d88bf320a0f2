""" Portable secrets blob: the paperkey RAW and BASE16 formats.

    Both encodings carry the same octet stream:

        a) 1 octet:  version of the paperkey format (currently 0)
        b) 1 octet:  OpenPGP key or subkey version (currently 4)
        c) 20 octets: key fingerprint
        d) 2 octets: 16-bit big endian length of the following secret data
        e) n octets: secret data, the tail of an OpenPGP Secret-Key packet
           starting with the string-to-key usage octet

    with b) through e) repeated for every subkey. RAW appends a CRC-24 of
    the stream. BASE16 prints it as numbered lines of hex octets, each line
    ending with the CRC-24 of that line, followed by one line holding the
    CRC-24 of the whole stream.
"""

import logging
import re
import string
import time
from struct import pack, unpack

from .exceptions import (ChecksumMismatch, EncryptedSecretKeyUnsupported, MalformedBlob,
                         MalformedStream, TruncatedBlob, UnexpectedEndOfStream)
from .extract import ExtractRecord
from .packets import FINGERPRINT_LENGTH, checksum
from .stream import InputStream, OutputStream
from .version import __version__

logger = logging.getLogger(__name__)

class DataType(object):
    AUTO = 'auto'
    BASE16 = 'base16'
    RAW = 'raw'

    input_types = (AUTO, BASE16, RAW)
    output_types = (BASE16, RAW)

PAPERKEY_FORMAT_VERSION = 0
CRC24_INIT = 0xB704CE
DEFAULT_OUTPUT_WIDTH = 78
# "NNN: " in front of the octets, "XXXXXX" CRC-24 behind them
LINE_OVERHEAD = 5 + 6
MIN_OUTPUT_WIDTH = LINE_OVERHEAD + 3

_BASE16_LINE = re.compile(r'^\s*\d+\s*:', re.M | re.A)
_HEXDIGITS = frozenset(string.hexdigits)

FILE_FORMAT = """File format:
a) 1 octet:  Version of the paperkey format (currently 0).
b) 1 octet:  OpenPGP key or subkey version (currently 4)
c) n octets: Key fingerprint (20 octets for a version 4 key or subkey)
d) 2 octets: 16-bit big endian length of the following secret data
e) n octets: Secret data: a partial OpenPGP secret key or subkey packet as
             specified in RFC 4880, starting with the string-to-key usage
             octet and continuing until the end of the packet.
Repeat fields b through e as needed to cover all subkeys.

To recover a secret key without using this program, take the secret data
of each key, in order, and append it to the matching public key packet.
Then switch the public key packet tag from 6 to 5 (14 to 7 for subkeys).
All other packets (user IDs, signatures, etc.) may simply be copied from
the public key.
"""

def crc24(data, crc = CRC24_INIT):
    """
        http://tools.ietf.org/html/rfc4880#section-6
        http://tools.ietf.org/html/rfc4880#section-6.1
    """
    for byte in bytearray(data):
        crc ^= byte << 16
        for j in range(0, 8):
            crc <<= 1
            if (crc & 0x01000000):
                crc ^= 0x01864cfb
    return crc & 0x00ffffff

def serialize(records):
    """ The octet stream both encodings carry, without any CRC """
    out = OutputStream()
    out.write_unpacked('!B', PAPERKEY_FORMAT_VERSION)
    for record in records:
        if record.fingerprint is None or len(record.fingerprint) != FINGERPRINT_LENGTH:
            raise ValueError("record %d has no %d octet fingerprint" % (record.key_index, FINGERPRINT_LENGTH))
        secret_length = len(record.secret_material) + 1 # s2k usage octet
        if secret_length > 65535:
            raise MalformedStream("secret material of key %d is too long (%d octets)" % (record.key_index, secret_length))
        out.write_unpacked('!B', record.version)
        out.write(record.fingerprint)
        out.write_unpacked('!H', secret_length)
        out.write_unpacked('!B', 0)
        out.write(record.secret_material)
    return out.getvalue()

def parse_records(data):
    """ Split the octet stream back into records. Checksums are not looked
        at here, see verify_records.
    """
    input = InputStream(data)
    records = []
    try:
        version = input.read_byte()
        if version != PAPERKEY_FORMAT_VERSION:
            raise MalformedBlob("unsupported paperkey format version %d" % version)
        while not input.eof():
            key_version = input.read_byte()
            if key_version not in (3, 4):
                raise MalformedBlob("unsupported OpenPGP key version %d in key %d" % (key_version, len(records)))
            fingerprint = input.read_bytes(FINGERPRINT_LENGTH)
            length = input.read_unpacked(2, '!H')
            if length == 0:
                raise MalformedBlob("key %d has no secret data" % len(records))
            secret = input.read_bytes(length)
            if secret[0] != 0:
                raise EncryptedSecretKeyUnsupported(secret[0], len(records))
            records.append(ExtractRecord(len(records), secret[1:], key_version, fingerprint))
    except UnexpectedEndOfStream as e:
        raise TruncatedBlob("secrets end in the middle of key %d: %s" % (len(records), e))

    if not records:
        raise MalformedBlob("no secret keys found in the secrets data")
    return records

def _checksum_error(error, ignore_checksum_errors):
    if not ignore_checksum_errors:
        raise error
    logger.warning("ignoring checksum error: %s", error)

def verify_records(records, ignore_checksum_errors = False):
    """ Check the two-octet checksum that closes unencrypted secret material """
    for record in records:
        material = record.secret_material
        if len(material) < 2:
            raise MalformedBlob("secret data of key %d is too short to hold a checksum" % record.key_index)
        expected = unpack('!H', material[-2:])[0]
        actual = checksum(material[:-2])
        if expected != actual:
            _checksum_error(ChecksumMismatch("secret key checksum of key %d" % record.key_index,
                                             expected, actual, 4), ignore_checksum_errors)
    return records

def encode_raw(records):
    data = serialize(records)
    return data + pack('!L', crc24(data))[1:] # CRC-24 is the low three octets

def decode_raw(blob, ignore_checksum_errors = False):
    blob = bytes(blob)
    if len(blob) < 4:
        raise TruncatedBlob("raw secrets are too short (%d octets)" % len(blob))
    data, trailer = blob[:-3], blob[-3:]
    records = parse_records(data)
    expected = unpack('!L', b'\0' + trailer)[0]
    actual = crc24(data)
    if expected != actual:
        _checksum_error(ChecksumMismatch("CRC of secret", expected, actual), ignore_checksum_errors)
    return verify_records(records, ignore_checksum_errors)

def base16_line_items(output_width):
    """ Number of octets printed per BASE16 line """
    if output_width < MIN_OUTPUT_WIDTH:
        raise ValueError("output width must be at least %d, got %d" % (MIN_OUTPUT_WIDTH, output_width))
    return (output_width - LINE_OVERHEAD) // 3

def _iter_header(records, comment, timestamp):
    yield "# Secret portions of key " + records[0].fingerprint.hex().upper()
    if timestamp is not None:
        yield "# Base16 data extracted %.24s" % time.ctime(timestamp)
    yield "# Created with paperkey (Python) " + __version__
    if comment:
        for line in comment.splitlines():
            yield "# " + line
    yield "#"
    for line in FILE_FORMAT.splitlines():
        yield ("# " + line).rstrip()
    yield "#"
    yield "# Each base16 line ends with a CRC-24 of that line."
    yield "# The entire block of data ends with a CRC-24 of the entire block of data."
    yield ""

def encode_base16(records, output_width = DEFAULT_OUTPUT_WIDTH, comment = None, timestamp = None, header = True):
    """ Returns the BASE16 text. Output only depends on the arguments, the
        extraction time is printed only when a timestamp is passed in.
    """
    line_items = base16_line_items(output_width)
    data = serialize(records)

    lines = []
    if header:
        lines.extend(_iter_header(records, comment, timestamp))

    line = 0
    for offset in range(0, len(data), line_items):
        line += 1
        chunk = data[offset:offset + line_items]
        lines.append("%3u: " % line + "".join("%02X " % b for b in bytearray(chunk)) + "%06X" % crc24(chunk))
    lines.append("%3u: %06X" % (line + 1, crc24(data)))
    return "\n".join(lines) + "\n"

def _is_hex(token, digits):
    return len(token) == digits and all(c in _HEXDIGITS for c in token)

def decode_base16(text, ignore_checksum_errors = False):
    """ Comment (#) and blank lines are skipped, every other line must be
        numbered 1, 2, 3, ... with no gaps.
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode('utf-8')
        except UnicodeDecodeError:
            raise MalformedBlob("base16 secrets must be UTF-8 text")

    data = bytearray()
    next_line = 1
    final_crc = None
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith('#'):
            continue
        if not line.isascii():
            raise MalformedBlob("line %d holds characters other than ASCII" % next_line)

        number, colon, payload = line.partition(':')
        number = number.strip()
        if not colon or not number.isdigit():
            raise MalformedBlob("line %d is not of the form 'NNN: XX XX ... CRC'" % next_line)
        line_number = int(number)
        if line_number != next_line:
            raise MalformedBlob("missing line number %d (saw %d)" % (next_line, line_number))
        if final_crc is not None:
            raise MalformedBlob("line %d follows the final CRC line" % line_number)
        next_line += 1

        tokens = payload.split()
        if not tokens:
            raise MalformedBlob("line %d holds no data" % line_number)
        octets, crc_token = tokens[:-1], tokens[-1]
        if not _is_hex(crc_token, 6):
            raise MalformedBlob("line %d does not end with a CRC-24" % line_number)
        crc = int(crc_token, 16)

        if not octets: # the CRC-24 of everything
            final_crc = crc
            continue

        line_data = bytearray()
        for token in octets:
            if not _is_hex(token, 2):
                raise MalformedBlob("line %d: %r is not a hex octet" % (line_number, token))
            line_data.append(int(token, 16))
        actual = crc24(line_data)
        if actual != crc:
            _checksum_error(ChecksumMismatch("CRC on line %d" % line_number, crc, actual), ignore_checksum_errors)
        data += line_data

    if next_line == 1:
        raise MalformedBlob("no base16 lines found")
    if final_crc is None:
        _checksum_error(ChecksumMismatch("CRC of secret is missing"), ignore_checksum_errors)
    else:
        actual = crc24(data)
        if actual != final_crc:
            _checksum_error(ChecksumMismatch("CRC of secret", final_crc, actual), ignore_checksum_errors)

    return verify_records(parse_records(bytes(data)), ignore_checksum_errors)

def detect_type(blob):
    """ Best effort guess between BASE16 and RAW. RAW always starts with the
        format version octet 0, which no text does.
    """
    if isinstance(blob, str):
        return DataType.BASE16
    if blob[:1] == b'\0':
        return DataType.RAW
    try:
        text = bytes(blob).decode('utf-8')
    except UnicodeDecodeError:
        return DataType.RAW
    if _BASE16_LINE.search(text):
        return DataType.BASE16
    return DataType.RAW

def encode(records, output_type = DataType.BASE16, output_width = DEFAULT_OUTPUT_WIDTH, comment = None, timestamp = None):
    """ Returns the portable blob as bytes, BASE16 is UTF-8 encoded """
    records = list(records)
    if not records:
        raise ValueError("no secret keys to encode")
    if output_type == DataType.RAW:
        return encode_raw(records)
    elif output_type in (DataType.BASE16, DataType.AUTO):
        return encode_base16(records, output_width, comment, timestamp).encode('utf-8')
    raise ValueError("unknown output type %r" % (output_type,))

def decode(blob, input_type = DataType.AUTO, ignore_checksum_errors = False):
    """ Returns the list of ExtractRecords held by a portable blob """
    if not blob:
        raise TruncatedBlob("no secrets data")
    if input_type == DataType.AUTO:
        input_type = detect_type(blob)
        logger.debug("secrets look like %s", input_type)
    if input_type == DataType.RAW:
        if isinstance(blob, str):
            raise MalformedBlob("raw secrets must be bytes")
        return decode_raw(blob, ignore_checksum_errors)
    elif input_type == DataType.BASE16:
        return decode_base16(blob, ignore_checksum_errors)
    raise ValueError("unknown input type %r" % (input_type,))
