"""
Distributed CSD serialization
JSON forms of verification keys and disclosures for HTTP transport
"""

import base64
from typing import Dict, List

from ecdsa import NIST256p, VerifyingKey

from csd_encoder import Disclosure


def serialize_vk(vk: VerifyingKey) -> str:
    """Serialize an ECDSA verification key (raw x || y, base64)"""
    return base64.b64encode(vk.to_string()).decode('utf-8')


def deserialize_vk(data: str) -> VerifyingKey:
    """Deserialize an ECDSA verification key"""
    return VerifyingKey.from_string(base64.b64decode(data), curve=NIST256p)


def serialize_disclosures(disclosures: List[Disclosure]) -> List[Dict]:
    """Serialize concealed-field disclosures"""
    return [
        {
            'claim_name': d.claim_name,
            'claim_value': d.claim_value,
            'disclosure': d.as_str(),
        }
        for d in disclosures
    ]


def deserialize_disclosures(data: List[Dict]) -> List[Disclosure]:
    """Deserialize disclosures; the encoded form is authoritative"""
    return [Disclosure.parse(item['disclosure']) for item in data]
