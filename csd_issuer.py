"""
Issuer Implementation
=====================

The issuer:
1. Conceals the fields that must not appear in the credential
2. Commits the remaining claims into a fresh accumulator (CsdEncoder)
3. Signs the envelope with its ES256 key
4. Hands the holder a presentation string

Security Model:
---------------
- The issuer's signing key and the per-credential accumulator secret must be
  kept secret; the latter never outlives ``issue``
- Verifiers obtain the issuer's verification key over a trusted channel
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ecdsa import SigningKey, VerifyingKey

from csd.accumulator import check_seed, generate_params
from csd.config import config
from csd.groups import setup
from csd_encoder import CONTROL_KEYS, HEADER_TYP, CsdEncoder, Disclosure
from csd_jwt import CsdJwt
import csd_utils

logger = logging.getLogger(__name__)


class Issuer:
    """Issues CSD credentials."""

    def __init__(self, signing_key: SigningKey = None, group_name: str = None,
                 param_seed: int = None):
        """
        Parameters
        ----------
        signing_key : SigningKey, optional
            P-256 key; a new one is generated when omitted
        group_name : str, optional
            Pairing curve for the accumulator
        param_seed : int, optional
            Setup parameter seed published in every envelope
        """
        if signing_key is None:
            signing_key, _ = csd_utils.generate_signing_keys()
        self._signing_key = signing_key
        loaded = setup(group_name or config.pairing_curve)
        self.group_name = loaded['group_name']
        self.param_seed = config.param_seed if param_seed is None else param_seed
        # Raises ValueError for a seed outside the unsigned 64-bit range
        generate_params(self.param_seed, loaded['group'])
        if config.key_seed is not None:
            check_seed(config.key_seed)

    def get_verifying_key(self) -> VerifyingKey:
        return self._signing_key.get_verifying_key()

    def issue(self, claims: Dict[str, Any], conceal: Iterable[str] = (),
              key_seed: int = None, key_binding_jwt: Optional[str] = None
              ) -> Tuple[str, List[Disclosure]]:
        """
        Issue a credential over ``claims`` with the fields at ``conceal`` removed.

        Returns
        -------
        presentation : str
            ``<jwt>~`` (or ``<jwt>~~<kb>`` with key binding)
        disclosures : List[Disclosure]
            The concealed fields, in the order given
        """
        encoder = CsdEncoder(claims, group_name=self.group_name,
                             key_seed=key_seed, param_seed=self.param_seed)
        disclosures = [encoder.conceal(path) for path in conceal]
        encoder.add_sd_alg_property()
        envelope = encoder.finalize()

        jwt = csd_utils.encode_jws(envelope, self._signing_key, typ=HEADER_TYP)
        logger.info("Signed credential with %d disclosed claim(s)", len(envelope) - len(CONTROL_KEYS))
        return CsdJwt(jwt, key_binding_jwt).presentation(), disclosures
