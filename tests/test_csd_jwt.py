"""
Presentation format and token signature tests
"""

import pytest

from csd.errors import PresentationFormatError, TokenSignatureError
from csd_jwt import CsdJwt
import csd_utils


class TestPresentation:

    def test_without_key_binding(self):
        sd_jwt = CsdJwt("header.payload.sig")
        assert sd_jwt.presentation() == "header.payload.sig~"
        assert CsdJwt.parse(sd_jwt.presentation()) == sd_jwt

    def test_with_key_binding(self):
        sd_jwt = CsdJwt("header.payload.sig", "kb.token.sig")
        assert str(sd_jwt) == "header.payload.sig~~kb.token.sig"

        parsed = CsdJwt.parse(str(sd_jwt))
        assert parsed.jwt == "header.payload.sig"
        assert parsed.key_binding_jwt == "kb.token.sig"

    def test_too_few_segments(self):
        with pytest.raises(PresentationFormatError, match="less than 2 segments"):
            CsdJwt.parse("header.payload.sig")

    def test_key_binding_needs_three_segments(self):
        with pytest.raises(PresentationFormatError, match="less than 3 segments"):
            CsdJwt.parse("header.payload.sig~kb")

    def test_extra_segments_tolerated(self):
        parsed = CsdJwt.parse("jwt~d1~d2~")
        assert parsed.jwt == "jwt"
        assert parsed.key_binding_jwt is None


class TestJws:

    @pytest.fixture
    def keys(self):
        return csd_utils.generate_signing_keys()

    def test_sign_and_verify(self, keys):
        sk, vk = keys
        payload = {"a": "1", "nested": {"x": [1, 2]}}
        token = csd_utils.encode_jws(payload, sk)

        decoded, header = csd_utils.decode_jws(token, vk)
        assert decoded == payload
        assert header == {"alg": "ES256", "typ": "csd-jwt"}
        assert token.count('.') == 2

    def test_wrong_key(self, keys):
        sk, _ = keys
        _, other_vk = csd_utils.generate_signing_keys()
        token = csd_utils.encode_jws({"a": "1"}, sk)
        with pytest.raises(TokenSignatureError):
            csd_utils.decode_jws(token, other_vk)

    def test_tampered_payload(self, keys):
        sk, vk = keys
        header, _, signature = csd_utils.encode_jws({"a": "1"}, sk).split('.')
        forged_payload = csd_utils.b64url_encode(b'{"a":"2"}')
        with pytest.raises(TokenSignatureError):
            csd_utils.decode_jws(f"{header}.{forged_payload}.{signature}", vk)

    def test_malformed(self, keys):
        _, vk = keys
        with pytest.raises(TokenSignatureError):
            csd_utils.decode_jws("only.two", vk)
        with pytest.raises(TokenSignatureError):
            csd_utils.decode_jws("!!.??.**", vk)

    def test_wrong_algorithm(self, keys):
        sk, vk = keys
        _, payload, signature = csd_utils.encode_jws({"a": "1"}, sk).split('.')
        header = csd_utils.b64url_encode(b'{"alg":"none"}')
        with pytest.raises(TokenSignatureError):
            csd_utils.decode_jws(f"{header}.{payload}.{signature}", vk)

    def test_junk_in_signature(self, keys):
        sk, vk = keys
        header, payload, signature = csd_utils.encode_jws({"a": "1"}, sk).split('.')
        for junk in ("!", "=", " ", "\n"):
            token = f"{header}.{payload}.{signature[:10]}{junk}{signature[10:]}"
            with pytest.raises(TokenSignatureError):
                csd_utils.decode_jws(token, vk)

    def test_non_ascii_token(self, keys):
        sk, vk = keys
        header, _, signature = csd_utils.encode_jws({"a": "1"}, sk).split('.')
        with pytest.raises(TokenSignatureError):
            csd_utils.decode_jws(f"{header}.eyJhIjoi\u00e9In0.{signature}", vk)

    def test_b64url_unpadded(self):
        encoded = csd_utils.b64url_encode(b'\xff\xfe')
        assert '=' not in encoded
        assert csd_utils.b64url_decode(encoded) == b'\xff\xfe'
