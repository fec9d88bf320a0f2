# Extract and restore the secret part of OpenPGP keys <http://tools.ietf.org/html/rfc4880>
# Speaks the file formats of paperkey <https://www.jabberwocky.com/software/paperkey/>

from .version import __version__

from .exceptions import (ChecksumMismatch, EncryptedSecretKeyUnsupported, FingerprintMismatch,
                         KeyMismatch, MalformedBlob, MalformedStream, PaperkeyException,
                         RecordCountMismatch, TruncatedBlob, UnexpectedEndOfStream)
from .extract import ExtractRecord, extract
from .output import DataType, crc24, decode, encode
from .restore import restore

def extract_secrets(secret_keyring, output_type = DataType.BASE16, output_width = 78, comment = None, timestamp = None):
    """ Secret keyring (binary OpenPGP) in, portable blob out """
    return encode(extract(secret_keyring), output_type, output_width, comment, timestamp)

def restore_secrets(public_keyring, secrets, input_type = DataType.AUTO, ignore_checksum_errors = False):
    """ Public keyring plus a portable blob in, secret keyring out """
    return restore(public_keyring, decode(secrets, input_type, ignore_checksum_errors))
