"""
Encoder Tests
=============

Tests the issuer-side envelope construction:
1. Concealment by JSON pointer (objects, arrays, escapes)
2. Path errors
3. Envelope layout after finalize
4. The encoder is frozen once finalized
"""

import pytest

from csd.config import config
from csd.errors import (
    DataTypeMismatchError,
    DeserializationError,
    EncoderStateError,
    InvalidDisclosureError,
    InvalidPathError,
)
from csd.scalar import claim_string
from csd_encoder import (
    ACCUMULATOR_KEY,
    CONTROL_KEYS,
    PARAM_SEED_KEY,
    PK_KEY,
    SD_ALG,
    CsdEncoder,
    Disclosure,
)
from csd_utils import b64url_encode


@pytest.fixture
def credential():
    return {
        "name": "Albert Einstein",
        "birthdate": "14/03/1879",
        "address": {
            "street": "112 Mercer Street",
            "city": "Princeton",
            "a/b": 1,
            "m~n": 2,
        },
        "nationalities": ["DE", "CH", "US"],
    }


class TestConceal:

    def test_conceal_top_level(self, credential):
        encoder = CsdEncoder(credential, group_name='BN254', key_seed=0)
        disclosure = encoder.conceal("/birthdate")

        assert disclosure.claim_name == "birthdate"
        assert disclosure.claim_value == "14/03/1879"
        assert "birthdate" not in encoder.object
        # The caller's object is untouched
        assert credential["birthdate"] == "14/03/1879"

    def test_conceal_nested(self, credential):
        encoder = CsdEncoder(credential, group_name='BN254', key_seed=0)
        encoder.conceal("/address/street")
        assert encoder.object["address"] == {"city": "Princeton", "a/b": 1, "m~n": 2}

    def test_conceal_escaped(self, credential):
        encoder = CsdEncoder(credential, group_name='BN254', key_seed=0)
        assert encoder.conceal("/address/a~1b").claim_name == "a/b"
        assert encoder.conceal("/address/m~0n").claim_name == "m~n"
        assert encoder.object["address"] == {"street": "112 Mercer Street", "city": "Princeton"}

    def test_conceal_array_element(self, credential):
        encoder = CsdEncoder(credential, group_name='BN254', key_seed=0)
        disclosure = encoder.conceal("/nationalities/1")

        assert disclosure.claim_name is None
        assert disclosure.claim_value == "CH"
        assert encoder.object["nationalities"] == ["DE", "US"]

    def test_disclosures_recorded_in_order(self, credential):
        encoder = CsdEncoder(credential, group_name='BN254', key_seed=0)
        encoder.conceal("/name")
        encoder.conceal("/birthdate")
        assert [d.claim_name for d in encoder.disclosures] == ["name", "birthdate"]

    @pytest.mark.parametrize("path", [
        "",
        "name",
        "/missing",
        "/address/zip",
        "/name/first",
        "/nationalities/3",
        "/nationalities/01",
        "/nationalities/-",
        "/address/bad~2escape",
    ])
    def test_invalid_paths(self, credential, path):
        encoder = CsdEncoder(credential, group_name='BN254', key_seed=0)
        with pytest.raises(InvalidPathError):
            encoder.conceal(path)
        assert encoder.object == credential

    def test_non_object_rejected(self):
        with pytest.raises(DataTypeMismatchError):
            CsdEncoder(["not", "an", "object"])

    def test_from_json(self):
        encoder = CsdEncoder.from_json('{"a": "1"}', group_name='BN254')
        assert encoder.object == {"a": "1"}
        with pytest.raises(DeserializationError):
            CsdEncoder.from_json('{"a": ')
        with pytest.raises(DataTypeMismatchError):
            CsdEncoder.from_json('[1, 2]')

    def test_try_to_string(self, credential):
        encoder = CsdEncoder({"a": "1"}, group_name='BN254')
        assert encoder.try_to_string() == '{"a": "1"}'


class TestDisclosure:

    def test_named_round_trip(self):
        d = Disclosure("given_name", "John")
        parsed = Disclosure.parse(d.as_str())
        assert parsed == d
        assert parsed.claim_value == "John"
        assert '=' not in str(d)

    def test_array_element_round_trip(self):
        d = Disclosure(None, {"k": [1, 2]})
        parsed = Disclosure.parse(str(d))
        assert parsed.claim_name is None
        assert parsed.claim_value == {"k": [1, 2]}

    def test_invalid(self):
        with pytest.raises(InvalidDisclosureError):
            Disclosure.parse("%%%")
        with pytest.raises(InvalidDisclosureError):
            Disclosure.parse(b64url_encode(b'{"not": "array"}'))
        with pytest.raises(InvalidDisclosureError):
            Disclosure.parse(b64url_encode(b'["a", "b", "c"]'))
        with pytest.raises(InvalidDisclosureError):
            Disclosure.parse(b64url_encode(b'[1, "b"]'))


class TestFinalize:

    def test_envelope_layout(self):
        encoder = CsdEncoder({"a": "1", "b": "2", "c": "3"}, group_name='BN254',
                             key_seed=0, param_seed=1)
        encoder.conceal("/b")
        encoder.add_sd_alg_property()
        envelope = encoder.finalize()

        assert set(envelope) == set(CONTROL_KEYS) | {'a::"1"', 'c::"3"'}
        assert envelope[SD_ALG] == "vb-acc+BN254"
        assert envelope[PARAM_SEED_KEY] == "1"
        assert all(isinstance(v, str) for v in envelope.values())
        # Concealed claims are never accumulated
        assert claim_string("b", "2") not in envelope

    def test_sd_alg_added_automatically(self):
        envelope = CsdEncoder({"a": "1"}, group_name='BN254', key_seed=0).finalize()
        assert envelope[SD_ALG] == "vb-acc+BN254"
        assert '_sd_alg::"vb-acc+BN254"' not in envelope

    def test_add_sd_alg_returns_previous(self):
        encoder = CsdEncoder({"a": "1", SD_ALG: "old"}, group_name='BN254')
        assert encoder.add_sd_alg_property() == "old"
        assert encoder.add_sd_alg_property() == "vb-acc+BN254"

    def test_deterministic_with_seeds(self):
        claims = {"a": "1", "b": {"c": 2}}
        e1 = CsdEncoder(claims, group_name='BN254', key_seed=5, param_seed=7).finalize()
        e2 = CsdEncoder(claims, group_name='BN254', key_seed=5, param_seed=7).finalize()
        e3 = CsdEncoder(claims, group_name='BN254', key_seed=6, param_seed=7).finalize()

        assert e1 == e2
        assert e1[ACCUMULATOR_KEY] != e3[ACCUMULATOR_KEY]
        assert e1[PK_KEY] != e3[PK_KEY]

    def test_empty_object(self):
        envelope = CsdEncoder({}, group_name='BN254', key_seed=0).finalize()
        assert set(envelope) == set(CONTROL_KEYS)

    def test_frozen_after_finalize(self):
        encoder = CsdEncoder({"a": "1", "b": "2"}, group_name='BN254', key_seed=0)
        first = encoder.finalize()
        assert encoder.finalized

        with pytest.raises(EncoderStateError):
            encoder.conceal("/a")
        with pytest.raises(EncoderStateError):
            encoder.add_sd_alg_property()

        first["tampered"] = "x"
        assert encoder.finalize() != first
        assert "tampered" not in encoder.finalize()

    @pytest.mark.parametrize("seed", [-1, 2 ** 64, "5", True])
    def test_bad_key_seed(self, seed):
        with pytest.raises(ValueError, match="64-bit"):
            CsdEncoder({"a": "1"}, group_name='BN254', key_seed=seed)

    def test_bad_param_seed(self):
        with pytest.raises(ValueError, match="64-bit"):
            CsdEncoder({"a": "1"}, group_name='BN254', param_seed=2 ** 64)

    def test_bad_configured_key_seed(self, monkeypatch):
        monkeypatch.setattr(config, 'key_seed', 2 ** 64)
        with pytest.raises(ValueError, match="64-bit"):
            CsdEncoder({"a": "1"}, group_name='BN254')
