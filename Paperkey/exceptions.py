""" Everything the engine can fail with.
    All of these are deterministic parse failures; nothing is retried.
"""

class PaperkeyException(Exception):
    pass # Everything inherited

class MalformedStream(PaperkeyException):
    """ The OpenPGP packet stream is structurally invalid """
    pass

class UnexpectedEndOfStream(MalformedStream):
    """ Fewer octets left than a length field or header asked for """
    pass

class MalformedBlob(PaperkeyException):
    """ The BASE16 or RAW secrets blob is structurally invalid """
    pass

class TruncatedBlob(MalformedBlob):
    pass

class EncryptedSecretKeyUnsupported(PaperkeyException):
    """ A secret key packet with a non-zero string-to-key usage octet.
        http://tools.ietf.org/html/rfc4880#section-5.5.3
    """
    def __init__(self, s2k_usage, key_index = None):
        self.s2k_usage = s2k_usage
        self.key_index = key_index
        msg = "secret key material is passphrase protected (s2k usage %d)" % s2k_usage
        if key_index is not None:
            msg += " in key %d" % key_index
        super(EncryptedSecretKeyUnsupported, self).__init__(msg + "; export it without a passphrase first")

class ChecksumMismatch(PaperkeyException):
    """ A CRC-24 or secret key checksum did not verify.
        Callers may choose to tolerate these (ignore_checksum_errors).
    """
    def __init__(self, what, expected = None, actual = None, digits = 6):
        self.expected = expected
        self.actual = actual
        if expected is None:
            msg = what
        else:
            msg = "%s does not match (%0*X != %0*X)" % (what, digits, expected, digits, actual)
        super(ChecksumMismatch, self).__init__(msg)

class KeyMismatch(PaperkeyException):
    """ The public keyring does not belong to the extracted secrets """
    pass

class RecordCountMismatch(KeyMismatch):
    def __init__(self, public_keys, records):
        self.public_keys = public_keys
        self.records = records
        super(RecordCountMismatch, self).__init__(
            "public keyring has %d keys but the secrets hold %d" % (public_keys, records))

class FingerprintMismatch(KeyMismatch):
    def __init__(self, key_index, expected, actual):
        self.key_index = key_index
        self.expected = expected
        self.actual = actual
        super(FingerprintMismatch, self).__init__(
            "key %d: public key fingerprint %s does not match secrets fingerprint %s" % (key_index, actual, expected))
