""" Rebuild a secret keyring from a public keyring and extracted secrets """

import logging
from struct import pack

from .exceptions import FingerprintMismatch, RecordCountMismatch
from .packets import PUBLIC_TAGS, SECRET_FOR_PUBLIC, KeyPacket, Packet, parse_packets
from .stream import OutputStream

logger = logging.getLogger(__name__)

def restore(public_keyring, records):
    """ Secret packets are paired with public key packets by position only:
        the n-th Public-Key / Public-Subkey packet gets the n-th record.
        User IDs, signatures and everything else pass through unchanged.
    """
    records = list(records)
    public_keys = 0
    out = OutputStream()

    for packet in parse_packets(public_keyring):
        if packet.tag not in PUBLIC_TAGS:
            out.write(packet.to_bytes())
            continue

        index = public_keys
        public_keys += 1
        if index >= len(records):
            raise RecordCountMismatch(count_public_keys(public_keyring), len(records))
        record = records[index]

        key = KeyPacket(packet)
        if record.fingerprint is not None:
            fingerprint = key.fingerprint()
            if fingerprint != record.fingerprint:
                raise FingerprintMismatch(index, record.fingerprint_hex(), fingerprint.hex().upper())

        secret = Packet(SECRET_FOR_PUBLIC[packet.tag],
                        key.public_prefix() + pack('!B', 0) + record.secret_material)
        logger.debug("restored secret key %d (tag %d -> %d, %d octets)",
                     index, packet.tag, secret.tag, secret.length)
        out.write(secret.to_bytes())

    if public_keys != len(records):
        raise RecordCountMismatch(public_keys, len(records))
    return out.getvalue()

def count_public_keys(public_keyring):
    """ Number of Public-Key / Public-Subkey packets in a keyring """
    return sum(1 for packet in parse_packets(public_keyring) if packet.tag in PUBLIC_TAGS)
