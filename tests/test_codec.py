"""
Element serialization tests
"""

import base64

import pytest

from csd import setup, initialize_accumulator
from csd.codec import (
    deserialize_accumulator,
    deserialize_pk,
    deserialize_witness,
    serialize_accumulator,
    serialize_pk,
    serialize_witness,
)
from csd.errors import CodecError, DecodeError, FormatError
from csd.scalar import scalar_from_str


class TestCodec:
    """Tests for accumulator, key and witness encodings."""

    @pytest.fixture
    def issued(self):
        group = setup('BN254')['group']
        params, keypair, acc, state = initialize_accumulator(3, 1, group)
        elem = scalar_from_str(group, 'name::"Ada"')
        acc = acc.add(elem, keypair.secret_key, state)
        witness = acc.get_membership_witness(elem, keypair.secret_key, state)
        return {
            'group': group,
            'params': params,
            'keypair': keypair,
            'accumulator': acc,
            'elem': elem,
            'witness': witness,
        }

    def test_round_trip(self, issued):
        group = issued['group']

        acc = deserialize_accumulator(serialize_accumulator(issued['accumulator']), group)
        pk = deserialize_pk(serialize_pk(issued['keypair'].public_key, group), group)
        witness = deserialize_witness(serialize_witness(issued['witness'], group), group)

        assert acc == issued['accumulator']
        assert pk == issued['keypair'].public_key
        assert witness == issued['witness']
        assert acc.verify_membership(issued['elem'], witness, pk, issued['params'])

    def test_standard_base64(self, issued):
        encoded = serialize_accumulator(issued['accumulator'])
        assert '\n' not in encoded
        assert base64.b64encode(base64.b64decode(encoded)).decode() == encoded

    def test_invalid_base64(self, issued):
        group = issued['group']
        with pytest.raises(DecodeError):
            deserialize_accumulator("not base64!!", group)
        with pytest.raises(DecodeError):
            deserialize_witness("abc", group)
        with pytest.raises(DecodeError):
            deserialize_pk(12345, group)

    def test_wrong_group(self, issued):
        group = issued['group']
        pk_str = serialize_pk(issued['keypair'].public_key, group)
        acc_str = serialize_accumulator(issued['accumulator'])

        # A G2 element where G1 is expected and vice versa
        with pytest.raises(FormatError):
            deserialize_witness(pk_str, group)
        with pytest.raises(FormatError):
            deserialize_pk(acc_str, group)

    def test_garbage_bytes(self, issued):
        group = issued['group']
        with pytest.raises(FormatError):
            deserialize_witness(base64.b64encode(b'no type prefix').decode(), group)

    def test_string_round_trip(self, issued):
        group = issued['group']
        acc_str = serialize_accumulator(issued['accumulator'])
        pk_str = serialize_pk(issued['keypair'].public_key, group)
        witness_str = serialize_witness(issued['witness'], group)

        assert serialize_accumulator(deserialize_accumulator(acc_str, group)) == acc_str
        assert serialize_pk(deserialize_pk(pk_str, group), group) == pk_str
        assert serialize_witness(deserialize_witness(witness_str, group), group) == witness_str

    @pytest.mark.parametrize("payload", [
        b'',
        b'AA',
        base64.b64encode(b'\x02'),
        base64.b64encode(b'\x02' * 8),
    ])
    def test_short_payload(self, issued, payload):
        with pytest.raises(FormatError):
            deserialize_witness(base64.b64encode(b'1:' + payload).decode(), issued['group'])
        with pytest.raises(FormatError):
            deserialize_pk(base64.b64encode(b'2:' + payload).decode(), issued['group'])

    def test_long_payload(self, issued):
        group = issued['group']
        for serialized, decode in [
            (serialize_witness(issued['witness'], group), deserialize_witness),
            (serialize_pk(issued['keypair'].public_key, group), deserialize_pk),
        ]:
            prefix, _, payload = base64.b64decode(serialized).partition(b':')
            extended = prefix + b':' + base64.b64encode(base64.b64decode(payload) + b'\x00' * 4)
            with pytest.raises(FormatError):
                decode(base64.b64encode(extended).decode(), group)

    def test_payload_not_base64(self, issued):
        raw = base64.b64decode(serialize_witness(issued['witness'], issued['group']))
        mangled = raw[:4] + b'*' + raw[5:]
        with pytest.raises(FormatError):
            deserialize_witness(base64.b64encode(mangled).decode(), issued['group'])

    def test_every_flipped_byte_rejected(self, issued):
        group = issued['group']
        raw = base64.b64decode(serialize_witness(issued['witness'], group))

        for position in range(len(raw)):
            flipped = bytearray(raw)
            flipped[position] ^= 0x01
            tampered = base64.b64encode(bytes(flipped)).decode()

            # Either the bytes no longer decode, or they decode to a point
            # that does not verify
            try:
                witness = deserialize_witness(tampered, group)
            except CodecError:
                continue
            assert not issued['accumulator'].verify_membership(
                issued['elem'], witness, issued['keypair'].public_key, issued['params']), position
