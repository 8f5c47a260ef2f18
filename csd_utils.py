"""
CSD Utility Functions
=====================

Outer signature envelope for credential envelopes: compact JWS with ES256.

The CSD core never signs or verifies tokens itself; it hands the finalized
envelope to ``encode_jws`` and receives the authenticated claims set from
``decode_jws``.

Security Notes:
---------------
- ECDSA over NIST P-256 (separate from the pairing curve)
- Issuer keys are ``ecdsa`` keys; PyJWT does the JWS encoding and checks
- Only ES256 is accepted on decode
"""

import re
from typing import Dict, Tuple

import jwt
from ecdsa import NIST256p, SigningKey, VerifyingKey
from jwt.utils import base64url_decode, base64url_encode

from csd.errors import TokenSignatureError

JWS_ALG = 'ES256'

# Three non-empty base64url segments, nothing else
_COMPACT_JWS = re.compile(r'[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+')


def generate_signing_keys() -> Tuple[SigningKey, VerifyingKey]:
    """
    Generate ECDSA signing and verification keys.

    Returns
    -------
    sk : SigningKey
        The issuer's secret signing key
    vk : VerifyingKey
        The public verification key (for verifiers)

    Examples
    --------
    >>> sk, vk = generate_signing_keys()
    """
    sk = SigningKey.generate(curve=NIST256p)
    vk = sk.get_verifying_key()
    return sk, vk


def b64url_encode(data: bytes) -> str:
    return base64url_encode(data).decode('ascii')


def b64url_decode(data: str) -> bytes:
    return base64url_decode(data)


def encode_jws(payload: Dict, sk: SigningKey, typ: str = 'csd-jwt') -> str:
    """
    Sign a claims set as a compact JWS.

    Parameters
    ----------
    payload : dict
        The claims set (e.g. a finalized credential envelope)
    sk : SigningKey
        P-256 signing key
    typ : str
        Value of the ``typ`` header

    Returns
    -------
    str
        ``<header>.<payload>.<signature>``
    """
    return jwt.encode(payload, sk.to_pem(), algorithm=JWS_ALG, headers={'typ': typ})


def decode_jws(token: str, vk: VerifyingKey) -> Tuple[Dict, Dict]:
    """
    Verify a compact JWS and return its claims set.

    Returns
    -------
    payload : dict
    header : dict

    Raises
    ------
    TokenSignatureError
        If the token is malformed, not ES256, or the signature does not verify
    """
    if not isinstance(token, str) or not _COMPACT_JWS.fullmatch(token):
        raise TokenSignatureError("Token is not a compact JWS")

    try:
        payload = jwt.decode(token, vk.to_pem(), algorithms=[JWS_ALG])
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as e:
        raise TokenSignatureError(f"Invalid token: {e}") from e

    if not isinstance(payload, dict):
        raise TokenSignatureError("Token payload is not an object")
    return payload, header
