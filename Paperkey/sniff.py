""" Guess what kind of secrets text a user pasted.

    This is only used to pick a decode path; the BASE16 decoder in
    Paperkey.output stays strict no matter what is guessed here.
"""

import base64
import binascii
import re
import string

from .exceptions import MalformedBlob
from .output import DataType

BASE16 = 'base16' # numbered "NNN: XX XX ... CRC" lines
HEX = 'hex'       # bare run of hex digits
BASE64 = 'base64' # base64 of the RAW format

_HEXDIGITS = frozenset(string.hexdigits)
_BASE64_ALPHABET = re.compile(r'^[A-Za-z0-9+/]+={0,2}$')

def _normalize(text):
    return text.replace("\r\n", "\n").strip()

def is_structured_base16(text):
    has_data_line = False
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        number, colon, payload = line.partition(':')
        number = number.strip()
        if not colon or not number.isascii() or not number.isdigit():
            return False
        tokens = payload.split()
        if not tokens:
            return False
        for token in tokens[:-1]:
            if len(token) != 2 or not all(c in _HEXDIGITS for c in token):
                return False
        if len(tokens[-1]) < 2 or not all(c in _HEXDIGITS for c in tokens[-1]):
            return False
        has_data_line = True
    return has_data_line

def is_plain_hex(text):
    digits = ''.join(text.split())
    return bool(digits) and all(c in _HEXDIGITS for c in digits)

def decode_base64(text):
    """ Returns the decoded octets, or None if text is not base64 """
    compact = ''.join(text.split())
    if not compact or len(compact) % 4 or not _BASE64_ALPHABET.match(compact):
        return None
    try:
        data = base64.b64decode(compact, validate = True)
    except binascii.Error:
        return None
    return data or None

def classify(text):
    """ Returns BASE16, HEX, BASE64 or None """
    text = _normalize(text)
    if not text:
        return None
    if is_structured_base16(text):
        return BASE16
    if is_plain_hex(text):
        return HEX
    if decode_base64(text) is not None:
        return BASE64
    return None

def prepare(text):
    """ Turn pasted text into (secrets, input_type) for Paperkey.output.decode """
    text = _normalize(text)
    kind = classify(text)
    if kind == BASE64:
        return (decode_base64(text), DataType.RAW)
    if kind == BASE16:
        return (text.encode('utf-8'), DataType.BASE16)
    if kind == HEX: # hex dump of the RAW format
        digits = ''.join(text.split())
        if len(digits) % 2:
            raise MalformedBlob("odd number of hex digits")
        return (bytes.fromhex(digits), DataType.RAW)
    raise MalformedBlob("unrecognized secrets text")
