"""
Credential Decoder (Verifier Side)
==================================

Takes the claims set of an already authenticated token and checks that every
disclosed claim is a member of the accumulator committed at issuance.

Workflow:
---------
1. ``decode``: structural pass over the object (nested objects are copied,
   arrays are rejected)
2. ``validate_object``: strip the control fields (accumulator, pk, param_seed,
   _sd_alg), rebuild the setup parameters from the seed, then verify each
   ``claim -> witness`` pair on a bounded process pool
3. ``verify``: both of the above, returning the disclosed claims as a plain
   ``{key: value}`` map

Nothing is returned unless every check passed.

Workers receive only strings and integers; each worker process loads the
pairing group and setup parameters once per (curve, seed) and decodes the
accumulator, public key and witness itself.
"""

import logging
import re
from concurrent.futures import ProcessPoolExecutor, as_completed
from functools import lru_cache
from typing import Any, Dict, List, NamedTuple

from csd.accumulator import SEED_BITS, SetupParams, generate_params
from csd.codec import deserialize_accumulator, deserialize_pk, deserialize_witness
from csd.config import config
from csd.errors import (
    CodecError,
    DataTypeMismatchError,
    EnvelopeError,
    MembershipVerificationError,
    UnsupportedArrayError,
)
from csd.groups import curve_for_alg, setup
from csd.scalar import parse_claim_string, scalar_from_str
from csd_encoder import ACCUMULATOR_KEY, CONTROL_KEYS, PARAM_SEED_KEY, PK_KEY, SD_ALG

logger = logging.getLogger(__name__)

_DECIMAL = re.compile(r'[0-9]+')


class Envelope(NamedTuple):
    """Control values of a credential envelope and its claim witnesses."""
    accumulator: str
    pk: str
    curve: str
    param_seed: int
    claims: Dict[str, str]


@lru_cache(maxsize=None)
def _load_params(curve: str, param_seed: int) -> SetupParams:
    return generate_params(param_seed, setup(curve)['group'])


def check_claim(claim: str, witness: str, accumulator: str, pk: str,
                curve: str, param_seed: int) -> bool:
    """
    Membership check of one claim against a serialized envelope.

    Runs inside a worker process, so every argument is a plain string or
    integer. A witness that does not decode counts as a failed check.
    """
    params = _load_params(curve, param_seed)
    group = params.group
    try:
        decoded_witness = deserialize_witness(witness, group)
    except CodecError as e:
        logger.debug("Witness of %r does not decode: %s", claim, e)
        return False
    element = scalar_from_str(group, claim)
    return deserialize_accumulator(accumulator, group).verify_membership(
        element, decoded_witness, deserialize_pk(pk, group), params)


class CsdDecoder:
    """
    Decoder and validator for credential envelopes.

    Parameters
    ----------
    max_workers : int, optional
        Size of the verification pool; ``None`` or a value below 1 uses
        ``config.worker_limit`` (CPU count when unset)
    fail_fast : bool, optional
        Cancel pending checks after the first failure; defaults to
        ``config.fail_fast``
    """

    def __init__(self, max_workers: int = None, fail_fast: bool = None):
        if max_workers is not None and max_workers > 0:
            self.max_workers = max_workers
        else:
            self.max_workers = config.worker_limit
        self.fail_fast = config.fail_fast if fail_fast is None else fail_fast

    def decode(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """
        Structural pass over the claims set.

        Raises
        ------
        UnsupportedArrayError
            If any value, at any depth, is an array
        """
        if not isinstance(obj, dict):
            raise DataTypeMismatchError("expected object")
        return self._decode_object(obj)

    def _decode_object(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        output = {}
        for key, value in obj.items():
            if isinstance(value, dict):
                output[key] = self._decode_object(value)
            elif isinstance(value, list):
                raise UnsupportedArrayError("No arrays allowed yet!")
            else:
                output[key] = value
        return output

    @staticmethod
    def _take_string(obj: Dict[str, Any], key: str, label: str) -> str:
        if key not in obj:
            raise EnvelopeError(f"No {label} found!")
        value = obj.pop(key)
        if not isinstance(value, str):
            raise EnvelopeError(f"{label.capitalize()} value found is not a string!")
        return value

    def _extract_envelope(self, obj: Dict[str, Any]) -> Envelope:
        """
        Split the envelope into its control values and the claim witnesses.

        All structural checks run before any element is decoded. The
        accumulator and public key are decoded once here so that a bad value
        is reported as a codec error rather than as failed claims.
        """
        if not isinstance(obj, dict):
            raise DataTypeMismatchError("expected object")
        claims = dict(obj)

        accumulator = self._take_string(claims, ACCUMULATOR_KEY, 'accumulator')
        param_seed = self._take_string(claims, PARAM_SEED_KEY, 'param seed')
        pk = self._take_string(claims, PK_KEY, 'public key')
        sd_alg = self._take_string(claims, SD_ALG, 'selective disclosure algorithm')

        if not _DECIMAL.fullmatch(param_seed) or int(param_seed) >= 2 ** SEED_BITS:
            raise EnvelopeError(f"Param seed {param_seed!r} can't be converted to u64")
        try:
            curve = curve_for_alg(sd_alg)
        except ValueError as e:
            raise EnvelopeError(str(e)) from e

        for claim, witness in claims.items():
            if not isinstance(witness, str):
                raise EnvelopeError(f"Witness [{witness!r}] of claim {claim!r} not a string")

        if setup(curve)['group_name'] != curve:
            raise EnvelopeError(f"Pairing curve {curve} is not available")

        group = _load_params(curve, int(param_seed)).group
        deserialize_accumulator(accumulator, group)
        deserialize_pk(pk, group)
        return Envelope(accumulator, pk, curve, int(param_seed), claims)

    def _verify_claims(self, envelope: Envelope) -> List[str]:
        """Run one membership check per claim; return the failing claims."""
        if not envelope.claims:
            return []

        failed = []
        with ProcessPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(check_claim, claim, witness, envelope.accumulator, envelope.pk,
                                envelope.curve, envelope.param_seed): claim
                for claim, witness in envelope.claims.items()
            }
            for future in as_completed(futures):
                if future.result():
                    continue
                claim = futures[future]
                failed.append(claim)
                logger.warning("Membership check failed for claim %r", claim)
                if self.fail_fast:
                    for pending in futures:
                        pending.cancel()
                    break
        return failed

    def validate_object(self, obj: Dict[str, Any]) -> bool:
        """
        Verify every disclosed claim of an envelope.

        Returns
        -------
        bool
            ``True`` when all witnesses verify

        Raises
        ------
        EnvelopeError
            If a control field is missing or mis-typed, or a witness is not a string
        DecodeError, FormatError
            If the accumulator or public key cannot be decoded
        MembershipVerificationError
            If at least one claim fails, naming the failing claim(s)
        """
        envelope = self._extract_envelope(obj)
        failed = self._verify_claims(envelope)
        if failed:
            raise MembershipVerificationError(failed)
        logger.debug("Validated %d claim(s)", len(envelope.claims))
        return True

    def verify(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """
        Decode and validate, then return the disclosed claims.

        Returns
        -------
        dict
            ``{key: value}`` for every disclosed claim
        """
        decoded = self.decode(obj)
        self.validate_object(decoded)
        plaintext = {}
        for claim in decoded:
            if claim in CONTROL_KEYS:
                continue
            key, value = parse_claim_string(claim)
            plaintext[key] = value
        return plaintext
