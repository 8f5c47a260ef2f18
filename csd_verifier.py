"""
Verifier Implementation
=======================

The verifier performs, in order:
1. Presentation parsing (segment checks)
2. Signature verification of the issuer token (ES256)
3. Accumulator membership verification of every disclosed claim

Only when all three pass are the disclosed claims returned.

Security Model:
---------------
- The verifier must hold the issuer's current verification key
- No partially validated claims are ever returned
"""

import logging
from typing import Any, Dict

from ecdsa import VerifyingKey

from csd.errors import TokenSignatureError
from csd_decoder import CsdDecoder
from csd_encoder import HEADER_TYP
from csd_jwt import CsdJwt
import csd_utils

logger = logging.getLogger(__name__)


class Verifier:
    """Verifies CSD presentations issued by one issuer."""

    def __init__(self, verifying_key: VerifyingKey, decoder: CsdDecoder = None):
        self.verifying_key = verifying_key
        self.decoder = decoder or CsdDecoder()

    def update_verifying_key(self, verifying_key: VerifyingKey):
        """Replace the issuer key, e.g. after key rotation."""
        self.verifying_key = verifying_key

    def verify_presentation(self, presentation: str) -> Dict[str, Any]:
        """
        Verify a presentation end to end.

        Returns
        -------
        dict
            The disclosed claims ``{key: value}``

        Raises
        ------
        PresentationFormatError
            Wrong number of segments
        TokenSignatureError
            Bad token or signature, or an unexpected ``typ``
        EnvelopeError, CodecError, MembershipVerificationError
            From the decoder
        """
        sd_jwt = CsdJwt.parse(presentation)
        payload, header = csd_utils.decode_jws(sd_jwt.jwt, self.verifying_key)
        if header.get('typ') != HEADER_TYP:
            raise TokenSignatureError(f"Unexpected token type {header.get('typ')!r}")

        claims = self.decoder.verify(payload)
        logger.info("Verified presentation with %d disclosed claim(s)", len(claims))
        return claims
