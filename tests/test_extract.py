import logging

import pytest

import keys
from Paperkey.exceptions import EncryptedSecretKeyUnsupported, MalformedStream, UnexpectedEndOfStream
from Paperkey.extract import ExtractRecord, extract
from Paperkey.packets import KeyPacket, Packet

class TestExtract:
    def test_one_record_per_secret_packet(self, keyring):
        records = extract(keyring.secret)
        assert [r.key_index for r in records] == [0, 1]
        assert [r.secret_material for r in records] == keyring.secret_materials()
        assert [r.version for r in records] == [4, 4]

    def test_fingerprints(self, keyring):
        records = extract(keyring.secret)
        for record, public in zip(records, keyring.public_bodies):
            assert record.fingerprint == KeyPacket(Packet(6, public)).fingerprint()
        assert len(records[0].fingerprint_hex()) == 40

    def test_new_format_headers(self, rsa_keyring):
        assert extract(keys.normalized(rsa_keyring.secret)) == extract(rsa_keyring.secret)

    def test_other_packets_are_skipped(self, rsa_keyring):
        data = keys.old_packet(12, b'\x00\x00') + rsa_keyring.secret + keys.old_packet(17, b'\x01' * 10)
        assert len(extract(data)) == 2

    def test_no_secret_keys(self, rsa_keyring):
        with pytest.raises(MalformedStream):
            extract(rsa_keyring.public)

    def test_empty_input(self):
        with pytest.raises(MalformedStream):
            extract(b'')

    def test_truncated_keyring(self, rsa_keyring):
        with pytest.raises(UnexpectedEndOfStream):
            extract(rsa_keyring.secret[:-5])

    def test_encrypted_subkey_rejects_everything(self, rsa_keyring):
        public = rsa_keyring.public_bodies[1]
        protected = keys.secret_body(public, b'\xFE' * 40, s2k_usage = 255)
        data = keys.old_packet(5, rsa_keyring.secret_bodies[0]) + keys.old_packet(7, protected)
        with pytest.raises(EncryptedSecretKeyUnsupported) as excinfo:
            extract(data)
        assert excinfo.value.key_index == 1
        assert excinfo.value.s2k_usage == 255
        assert "key 1" in str(excinfo.value)

    def test_secrets_are_not_logged(self, rsa_keyring, caplog):
        with caplog.at_level(logging.DEBUG, logger = 'Paperkey'):
            records = extract(rsa_keyring.secret)
        assert "skipping packet tag 13" in caplog.text
        assert records[0].secret_material.hex() not in caplog.text.lower()

class TestExtractRecord:
    def test_equality(self):
        a = ExtractRecord(0, b'\x01\x02', 4, b'\xAA' * 20)
        assert a == ExtractRecord(0, bytearray(b'\x01\x02'), 4, b'\xAA' * 20)
        assert a != ExtractRecord(1, b'\x01\x02', 4, b'\xAA' * 20)
        assert a != ExtractRecord(0, b'\x01\x03', 4, b'\xAA' * 20)

    def test_fingerprint_hex(self):
        assert ExtractRecord(0, b'').fingerprint_hex() is None
        assert ExtractRecord(0, b'', 4, b'\xab' * 20).fingerprint_hex() == 'AB' * 20
        assert 'AB' * 20 in repr(ExtractRecord(0, b'', 4, b'\xab' * 20))
