from struct import pack
import hashlib

import pytest

import keys
from Paperkey.exceptions import EncryptedSecretKeyUnsupported, MalformedStream, UnexpectedEndOfStream
from Paperkey.packets import KeyPacket, Packet, checksum, parse_packets, split_secret_key
from Paperkey.stream import InputStream

def parse_one(data):
    return Packet.parse(InputStream(data))

class TestHeaderParsing:
    def test_old_format_one_octet_length(self):
        packet = parse_one(keys.old_packet(13, b'Alice'))
        assert packet.tag == 13
        assert packet.data == b'Alice'
        assert packet.header_format == 'old'

    def test_old_format_two_and_four_octet_lengths(self):
        body = b'x' * 300
        assert parse_one(pack('!BH', 0x80 | (13 << 2) | 1, 300) + body).data == body
        assert parse_one(pack('!BL', 0x80 | (13 << 2) | 2, 300) + body).data == body

    def test_old_format_indeterminate_length(self):
        packet = parse_one(pack('!B', 0x80 | (11 << 2) | 3) + b'the rest')
        assert packet.tag == 11
        assert packet.data == b'the rest'

    def test_new_format_lengths(self):
        assert parse_one(b'\xCD\x03abc').data == b'abc'
        # 192 + ((0xC1 - 192) << 8) + 0x08 = 456
        assert len(parse_one(b'\xCD\xC1\x08' + b'y' * 456).data) == 456
        assert len(parse_one(b'\xCD\xFF\x00\x00\x01\x00' + b'z' * 256).data) == 256

    def test_new_format_partial_lengths(self):
        # 0xE1: partial chunk of 2 octets, then a final 3 octet chunk
        packet = parse_one(b'\xCB\xE1ab\x03cde')
        assert packet.tag == 11
        assert packet.data == b'abcde'

    def test_partial_length_key_packet(self):
        with pytest.raises(MalformedStream):
            parse_one(b'\xC6\xE1ab\x03cde')

    def test_missing_high_bit(self):
        with pytest.raises(MalformedStream):
            parse_one(b'\x13\x01a')

    def test_reserved_tag(self):
        with pytest.raises(MalformedStream):
            parse_one(b'\xC0\x01a')

    def test_truncated_body(self):
        with pytest.raises(UnexpectedEndOfStream):
            parse_one(keys.old_packet(13, b'abc')[:-1])

    def test_truncated_header(self):
        with pytest.raises(UnexpectedEndOfStream):
            parse_one(b'\xCD\xC1')

    def test_parse_packets(self):
        data = keys.old_packet(13, b'one') + Packet(2, b'two').to_bytes()
        packets = list(parse_packets(data))
        assert packets == [Packet(13, b'one'), Packet(2, b'two')]
        assert list(parse_packets(b'')) == []

class TestHeaderEncoding:
    @pytest.mark.parametrize('length,header', [
        (0, b'\xC5\x00'),
        (191, b'\xC5\xBF'),
        (192, b'\xC5\xC0\x00'),
        (8383, b'\xC5\xDF\xFF'),
        (8384, b'\xC5\xFF\x00\x00\x20\xC0'),
    ])
    def test_shortest_length_field(self, length, header):
        assert Packet(5, b'\0' * length).header() == header

    @pytest.mark.parametrize('length', [0, 191, 192, 8383, 8384, 70000])
    def test_reparse(self, length):
        packet = Packet(7, bytes(bytearray(i % 256 for i in range(length))))
        assert parse_one(packet.to_bytes()) == packet

    def test_old_format_is_rewritten(self):
        data = keys.old_packet(13, b'Alice')
        assert parse_one(data).to_bytes() == b'\xCD\x05Alice'

class TestKeyPacket:
    def test_split_rsa(self, rsa_keyring):
        public, secret = rsa_keyring.public_bodies[0], rsa_keyring.secret_bodies[0]
        prefix, s2k_usage, material = split_secret_key(Packet(5, secret))
        assert prefix == public
        assert s2k_usage == 0
        assert material == rsa_keyring.secret_materials()[0]

    def test_split_ecc(self, ecc_keyring):
        for tag, public, secret in zip((5, 7), ecc_keyring.public_bodies, ecc_keyring.secret_bodies):
            key = KeyPacket(Packet(tag, secret))
            prefix, _, material = key.split()
            assert prefix == public
            assert material == secret[len(public) + 1:]
        assert key.key_algorithm == 18

    def test_scan_fields(self, rsa_keyring):
        key = KeyPacket(Packet(5, rsa_keyring.secret_bodies[0]))
        assert key.public_length() == len(rsa_keyring.public_bodies[0])
        assert key.version == 4
        assert key.key_algorithm == 1
        assert len(key.mpis) == 2

    def test_material_ends_with_checksum(self, keyring):
        for material in keyring.secret_materials():
            assert checksum(material[:-2]) == int.from_bytes(material[-2:], 'big')

    def test_v3_key(self):
        public = pack('!BLHB', 3, keys.TIMESTAMP, 0, 1) + keys.mpi(0xC5) + keys.mpi(0x11)
        secret = keys.secret_body(public, keys.mpi(0x1234))
        key = KeyPacket(Packet(5, secret))
        prefix, _, material = key.split()
        assert prefix == public
        assert key.version == 3
        assert material == keys.mpi(0x1234) + pack('!H', checksum(keys.mpi(0x1234)))

    def test_encrypted_key(self, rsa_keyring):
        public = rsa_keyring.public_bodies[0]
        secret = keys.secret_body(public, b'\x03\x01\x02' * 20, s2k_usage = 254)
        with pytest.raises(EncryptedSecretKeyUnsupported) as excinfo:
            split_secret_key(Packet(5, secret))
        assert excinfo.value.s2k_usage == 254

    def test_unknown_algorithm(self):
        body = pack('!BLB', 4, keys.TIMESTAMP, 99) + keys.mpi(5) + b'\0\0\0'
        with pytest.raises(MalformedStream):
            split_secret_key(Packet(5, body))

    def test_unsupported_version(self):
        body = pack('!BLB', 5, keys.TIMESTAMP, 1) + keys.mpi(5) + keys.mpi(3) + b'\0\0\0'
        with pytest.raises(MalformedStream):
            split_secret_key(Packet(5, body))

    def test_truncated_public_fields(self, rsa_keyring):
        with pytest.raises(MalformedStream):
            split_secret_key(Packet(5, rsa_keyring.public_bodies[0][:-3]))

    def test_missing_s2k_usage(self, rsa_keyring):
        with pytest.raises(MalformedStream):
            split_secret_key(Packet(5, rsa_keyring.public_bodies[0]))

    def test_missing_checksum(self, rsa_keyring):
        with pytest.raises(MalformedStream):
            split_secret_key(Packet(5, rsa_keyring.public_bodies[0] + b'\x00\x01'))

    def test_not_a_key_packet(self):
        with pytest.raises(ValueError):
            KeyPacket(Packet(13, b'Alice'))

    def test_public_packet_has_no_secrets(self, rsa_keyring):
        with pytest.raises(ValueError):
            KeyPacket(Packet(6, rsa_keyring.public_bodies[0])).split()

class TestFingerprint:
    def test_v4(self, keyring):
        public = keyring.public_bodies[0]
        expected = hashlib.sha1(b'\x99' + pack('!H', len(public)) + public).digest()
        assert KeyPacket(Packet(6, public)).fingerprint() == expected
        assert KeyPacket(Packet(5, keyring.secret_bodies[0])).fingerprint() == expected

    def test_v3(self):
        public = pack('!BLHB', 3, keys.TIMESTAMP, 0, 1) + keys.mpi(0xC5) + keys.mpi(0x11)
        expected = hashlib.md5(b'\xC5\x11').digest() + b'\0' * 4
        assert KeyPacket(Packet(6, public)).fingerprint() == expected
