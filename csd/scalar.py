"""
Claim to Scalar Mapping
=======================

Claims are accumulated as elements of the scalar field Z_p of the pairing
group. A claim ``(key, value)`` is first normalized to the string

    "{key}::{json(value)}"

where json is compact canonical JSON, and the string is then hashed:

    y = int_be(SHA3-256(utf8(string))) mod p

The reduction is a plain modular reduction, not rejection sampling. Two claims
that normalize to the same string map to the same scalar.
"""

import hashlib
import json
from typing import Any, Tuple

from charm.toolbox.pairinggroup import PairingGroup, ZR

from csd.errors import InvalidClaimError

CLAIM_SEPARATOR = '::'


def canonical_json(value: Any) -> str:
    """Compact JSON with sorted object keys; non-ASCII characters kept as-is."""
    return json.dumps(value, separators=(',', ':'), sort_keys=True, ensure_ascii=False)


def claim_string(key: str, value: Any) -> str:
    return f"{key}{CLAIM_SEPARATOR}{canonical_json(value)}"


def scalar_from_str(group: PairingGroup, string: str) -> ZR:
    """
    Map a string to a scalar in Z_p.

    Parameters
    ----------
    group : PairingGroup
        The pairing group whose order defines the field
    string : str
        Any string

    Returns
    -------
    ZR
        int_be(SHA3-256(string)) mod p
    """
    digest = hashlib.sha3_256(string.encode('utf-8')).digest()
    p = int(group.order())
    return group.init(ZR, int.from_bytes(digest, 'big') % p)


def scalar_from_claim(group: PairingGroup, key: str, value: Any) -> ZR:
    return scalar_from_str(group, claim_string(key, value))


def parse_claim_string(string: str) -> Tuple[str, Any]:
    """
    Split a claim string back into ``(key, value)``.

    The key is taken up to the first ``::`` whose remainder parses as JSON, so
    keys may themselves contain ``::`` as long as the prefix before it does not
    leave a valid JSON remainder.

    Raises
    ------
    InvalidClaimError
        If no split yields a JSON value.
    """
    start = 0
    while True:
        index = string.find(CLAIM_SEPARATOR, start)
        if index < 0:
            raise InvalidClaimError(f"Not a claim string: {string!r}")
        try:
            value = json.loads(string[index + len(CLAIM_SEPARATOR):])
        except ValueError:
            start = index + 1
            continue
        return string[:index], value
