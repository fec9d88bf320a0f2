""" Pull the secret material out of a secret keyring """

import logging

from .exceptions import EncryptedSecretKeyUnsupported, MalformedStream
from .packets import SECRET_TAGS, KeyPacket, parse_packets

logger = logging.getLogger(__name__)

class ExtractRecord(object):
    """ Secret material of one key or subkey, in keyring order.

        secret_material is everything after the string-to-key usage octet:
        the secret MPIs and their two-octet checksum.
    """
    def __init__(self, key_index, secret_material, version = 4, fingerprint = None):
        self.key_index = key_index
        self.secret_material = bytes(secret_material)
        self.version = version
        self.fingerprint = fingerprint

    def fingerprint_hex(self):
        if self.fingerprint is None:
            return None
        return self.fingerprint.hex().upper()

    def __repr__(self):
        return "<ExtractRecord %d: %d octets, fingerprint %s>" % (
            self.key_index, len(self.secret_material), self.fingerprint_hex())

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __ne__(self, other):
        return not self.__eq__(other)

def extract(secret_keyring):
    """ Returns one ExtractRecord per Secret-Key / Secret-Subkey packet.

        Any passphrase protected key rejects the whole keyring; a backup
        missing one key is worse than no backup.
    """
    records = []
    for packet in parse_packets(secret_keyring):
        if packet.tag not in SECRET_TAGS:
            logger.debug("skipping packet tag %d (%d octets)", packet.tag, packet.length)
            continue

        key = KeyPacket(packet)
        try:
            _, _, secret_material = key.split()
        except EncryptedSecretKeyUnsupported as e:
            raise EncryptedSecretKeyUnsupported(e.s2k_usage, len(records))
        record = ExtractRecord(len(records), secret_material, key.version, key.fingerprint())
        logger.debug("secret key %d: fingerprint %s, secret offset %d, %d secret octets",
                     record.key_index, record.fingerprint_hex(), key.public_length() + 1,
                     len(secret_material))
        records.append(record)

    if not records:
        raise MalformedStream("unable to find a secret key packet")
    return records
