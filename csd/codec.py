"""
Accumulator Serialization
=========================

Accumulator values, public keys and membership witnesses travel as standard
base64 strings (no line wraps) of charm's compressed element encoding.

Decoding is strict:
- the string must be valid base64 (DecodeError otherwise)
- the bytes must carry the expected type prefix and a payload of exactly the
  compressed element length, checked before charm parses anything
- they must decode to an element of the expected group, must not be
  the identity, must pass the group-membership check and must re-encode to
  exactly the same bytes (FormatError otherwise)
"""

import base64
import binascii

from charm.toolbox.pairinggroup import PairingGroup, G1, G2

from csd.accumulator import MembershipWitness, PositiveAccumulator, PublicKey
from csd.errors import DecodeError, FormatError

# Type prefixes of charm's element encoding ("<type>:<data>")
_TYPE_PREFIX = {G1: b'1', G2: b'2'}
_TYPE_NAME = {G1: 'G1', G2: 'G2'}

# Compressed element length per (group, type); the group is kept alive so its id stays unique
_PAYLOAD_LENGTH = {}


def _encode_element(elem, group: PairingGroup) -> str:
    return base64.b64encode(group.serialize(elem)).decode('ascii')


def _payload_length(group: PairingGroup, expected_type) -> int:
    key = (id(group), expected_type)
    if key not in _PAYLOAD_LENGTH:
        reference = group.serialize(group.hash(b'csd-codec-length', expected_type))
        _PAYLOAD_LENGTH[key] = (group, len(base64.b64decode(reference.partition(b':')[2])))
    return _PAYLOAD_LENGTH[key][1]


def _decode_element(data: str, group: PairingGroup, expected_type):
    if not isinstance(data, str):
        raise DecodeError(f"Expected a base64 string, got {type(data).__name__}")
    try:
        raw = base64.b64decode(data.encode('ascii'), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise DecodeError(f"Invalid base64: {e}") from e

    type_name = _TYPE_NAME[expected_type]
    prefix, sep, payload = raw.partition(b':')
    if not sep or prefix != _TYPE_PREFIX[expected_type]:
        raise FormatError(f"Not a {type_name} element")

    # charm reads a fixed-size element from the payload, so its length is checked first
    try:
        payload_bytes = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise FormatError(f"Invalid {type_name} payload: {e}") from e
    expected_length = _payload_length(group, expected_type)
    if len(payload_bytes) != expected_length:
        raise FormatError(f"{type_name} payload has {len(payload_bytes)} bytes, expected {expected_length}")

    try:
        elem = group.deserialize(raw)
    except Exception as e:
        # charm reports malformed points with generic exceptions
        raise FormatError(f"Cannot decode {type_name} element: {e}") from e
    if elem is None:
        raise FormatError(f"Cannot decode {type_name} element")

    if elem == group.init(expected_type, 1):
        raise FormatError(f"{type_name} element is the identity")
    if not group.ismember(elem):
        raise FormatError(f"{type_name} element is not in the group")
    if group.serialize(elem) != raw:
        raise FormatError(f"{type_name} element is not canonically encoded")
    return elem


def serialize_accumulator(accumulator: PositiveAccumulator) -> str:
    return _encode_element(accumulator.value, accumulator.group)


def deserialize_accumulator(data: str, group: PairingGroup) -> PositiveAccumulator:
    return PositiveAccumulator(_decode_element(data, group, G1), group)


def serialize_pk(public_key: PublicKey, group: PairingGroup) -> str:
    return _encode_element(public_key.value, group)


def deserialize_pk(data: str, group: PairingGroup) -> PublicKey:
    return PublicKey(_decode_element(data, group, G2))


def serialize_witness(witness: MembershipWitness, group: PairingGroup) -> str:
    return _encode_element(witness.value, group)


def deserialize_witness(data: str, group: PairingGroup) -> MembershipWitness:
    return MembershipWitness(_decode_element(data, group, G1))
