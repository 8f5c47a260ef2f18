"""
Credential Encoder (Issuer Side)
================================

Turns a flat JSON claim map into a credential envelope:

1. Fields the holder must not reveal are removed with ``conceal(path)``
2. Every remaining top-level field becomes a claim string ``key::json(value)``
3. The claim scalars are batch-added into a fresh accumulator
4. The envelope carries the accumulator, the public key, the parameter seed,
   the algorithm tag and one membership witness per retained claim

Envelope Layout:
----------------
    {
        "accumulator": "<base64 G1>",
        "pk": "<base64 G2>",
        "param_seed": "<u64>",
        "_sd_alg": "vb-acc+BN254",
        "<key>::<json value>": "<base64 witness>",
        ...
    }

Concealed fields are not accumulated and get no witness: they are excluded
from the issued credential for good.
"""

import binascii
import copy
import json
import logging
import re
import secrets
from typing import Any, Dict, List, Optional

from csd.accumulator import SEED_BITS, check_seed, initialize_accumulator
from csd.codec import serialize_accumulator, serialize_pk, serialize_witness
from csd.config import config
from csd.errors import (
    AccumulatorError,
    AddBatchError,
    DataTypeMismatchError,
    DeserializationError,
    EncoderStateError,
    InvalidDisclosureError,
    InvalidPathError,
    WitnessBatchError,
)
from csd.groups import alg_for_curve, setup
from csd.scalar import canonical_json, claim_string, scalar_from_str
from csd_utils import b64url_decode, b64url_encode

logger = logging.getLogger(__name__)

SD_ALG = '_sd_alg'
HEADER_TYP = 'csd-jwt'
ACCUMULATOR_KEY = 'accumulator'
PK_KEY = 'pk'
PARAM_SEED_KEY = 'param_seed'

CONTROL_KEYS = (ACCUMULATOR_KEY, PK_KEY, PARAM_SEED_KEY, SD_ALG)

_INVALID_ESCAPE = re.compile(r'~(?![01])')
_ARRAY_INDEX = re.compile(r'0|[1-9][0-9]*')


class Disclosure:
    """
    A field removed from the credential by ``CsdEncoder.conceal``.

    Attributes
    ----------
    claim_name : str or None
        The field name; ``None`` for array elements
    claim_value : Any
        The removed value
    disclosure : str
        Unpadded base64url of ``["name", value]`` or ``[value]``
    """

    def __init__(self, claim_name: Optional[str], claim_value: Any):
        self.claim_name = claim_name
        self.claim_value = claim_value
        if claim_name is not None:
            payload = [claim_name, claim_value]
        else:
            payload = [claim_value]
        self.disclosure = b64url_encode(canonical_json(payload).encode('utf-8'))

    @classmethod
    def parse(cls, disclosure: str) -> 'Disclosure':
        """
        Parse an encoded disclosure.

        Raises
        ------
        InvalidDisclosureError
            If the input is not base64url of a one or two element JSON array
        """
        try:
            decoded = json.loads(b64url_decode(disclosure).decode('utf-8'))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise InvalidDisclosureError(f"Disclosure could not be decoded: {disclosure}") from e

        if not isinstance(decoded, list):
            raise InvalidDisclosureError(f"Decoded disclosure is not an array: {disclosure}")
        if len(decoded) == 1:
            return cls(None, decoded[0])
        if len(decoded) == 2:
            if not isinstance(decoded[0], str):
                raise InvalidDisclosureError("Claim name could not be parsed as a string")
            return cls(decoded[0], decoded[1])
        raise InvalidDisclosureError(f"Deserialized array has an invalid length of {len(decoded)}")

    def as_str(self) -> str:
        return self.disclosure

    def __str__(self):
        return self.disclosure

    def __eq__(self, other):
        if not isinstance(other, Disclosure):
            return NotImplemented
        return (self.claim_name, self.disclosure) == (other.claim_name, other.disclosure)

    def __repr__(self):
        return f"Disclosure(claim_name={self.claim_name!r}, claim_value={self.claim_value!r})"


def _parse_pointer(path: str) -> List[str]:
    if not isinstance(path, str):
        raise InvalidPathError(f"Path must be a string, got {type(path).__name__}")
    if path == '':
        raise InvalidPathError("path does not contain any values")
    if not path.startswith('/'):
        raise InvalidPathError(f"JSON pointer must start with '/': {path!r}")
    if _INVALID_ESCAPE.search(path):
        raise InvalidPathError(f"Invalid escape sequence in {path!r}")
    return [token.replace('~1', '/').replace('~0', '~') for token in path[1:].split('/')]


def _array_index(token: str, array: list) -> int:
    if not _ARRAY_INDEX.fullmatch(token):
        raise InvalidPathError(f"Can't convert element key {token!r} to an array index")
    index = int(token)
    if index >= len(array):
        raise InvalidPathError(f"Array index {index} out of range")
    return index


def _resolve(document: Any, tokens: List[str]) -> Any:
    node = document
    for token in tokens:
        if isinstance(node, dict):
            if token not in node:
                raise InvalidPathError(f"{token} does not exist")
            node = node[token]
        elif isinstance(node, list):
            node = node[_array_index(token, node)]
        else:
            raise InvalidPathError(f"Cannot descend into a scalar at {token!r}")
    return node


class CsdEncoder:
    """
    Builds a credential envelope from a JSON object.

    The encoder is single use: ``conceal`` may be called any number of times
    before ``finalize``; after ``finalize`` the encoder is frozen.
    """

    def __init__(self, obj: Dict[str, Any], group_name: str = None,
                 key_seed: int = None, param_seed: int = None):
        """
        Parameters
        ----------
        obj : dict
            The claim map; it is copied, the caller's object is not modified
        group_name : str, optional
            Pairing curve, defaults to ``config.pairing_curve``
        key_seed : int, optional
            Issuer key seed; defaults to ``config.key_seed`` or a fresh random seed
        param_seed : int, optional
            Setup parameter seed; defaults to ``config.param_seed``
        """
        if not isinstance(obj, dict):
            raise DataTypeMismatchError("expected object")

        params = setup(group_name or config.pairing_curve)
        self.group = params['group']
        self.group_name = params['group_name']
        self.key_seed = None if key_seed is None else check_seed(key_seed)
        self.param_seed = check_seed(config.param_seed if param_seed is None else param_seed)
        if config.key_seed is not None:
            check_seed(config.key_seed)

        self._object = copy.deepcopy(obj)
        self._disclosures: List[Disclosure] = []
        self._envelope: Optional[Dict[str, str]] = None

    @classmethod
    def from_json(cls, text: str, **kwargs) -> 'CsdEncoder':
        """
        Create an encoder from JSON text.

        Raises
        ------
        DeserializationError
            If ``text`` is not valid JSON
        DataTypeMismatchError
            If it is valid JSON but not an object
        """
        try:
            obj = json.loads(text)
        except ValueError as e:
            raise DeserializationError(str(e)) from e
        return cls(obj, **kwargs)

    @property
    def object(self) -> Dict[str, Any]:
        """The residual plaintext view (after concealment)."""
        return self._object

    @property
    def disclosures(self) -> List[Disclosure]:
        return list(self._disclosures)

    @property
    def finalized(self) -> bool:
        return self._envelope is not None

    def _check_mutable(self):
        if self.finalized:
            raise EncoderStateError("Encoder already finalized")

    def add_sd_alg_property(self) -> Optional[Any]:
        """
        Set ``_sd_alg`` at the top level of the object.

        Returns
        -------
        The previous value, or ``None``
        """
        self._check_mutable()
        previous = self._object.get(SD_ALG)
        self._object[SD_ALG] = alg_for_curve(self.group_name)
        return previous

    def conceal(self, path: str) -> Disclosure:
        """
        Remove the value at ``path`` (a JSON pointer) from the object.

        Parameters
        ----------
        path : str
            e.g. "/address/street" or "/nationalities/0"

        Returns
        -------
        Disclosure
            The removed field

        Raises
        ------
        InvalidPathError
            If the pointer is malformed, does not resolve, or its parent is
            neither an object nor an array
        """
        self._check_mutable()
        tokens = _parse_pointer(path)
        element_key = tokens[-1]
        parent = _resolve(self._object, tokens[:-1])

        if isinstance(parent, dict):
            if element_key not in parent:
                raise InvalidPathError(f"{element_key} does not exist")
            disclosure = Disclosure(element_key, parent.pop(element_key))
        elif isinstance(parent, list):
            disclosure = Disclosure(None, parent.pop(_array_index(element_key, parent)))
        else:
            raise InvalidPathError("parent of element can only be an object or an array")

        self._disclosures.append(disclosure)
        logger.debug("Concealed %s", path)
        return disclosure

    def try_to_string(self) -> str:
        """The residual plaintext view as JSON text."""
        return json.dumps(self._object)

    def _resolve_key_seed(self) -> int:
        if self.key_seed is not None:
            return self.key_seed
        if config.key_seed is not None:
            return config.key_seed
        return secrets.randbits(SEED_BITS)

    def finalize(self) -> Dict[str, str]:
        """
        Commit the remaining claims and build the credential envelope.

        Returns
        -------
        dict
            The envelope (see module docstring)

        Raises
        ------
        AddBatchError
            If two claims map to the same scalar
        WitnessBatchError
            If a witness cannot be generated

        Notes
        -----
        The keypair and witness state exist only inside this call; only the
        public key leaves it. Calling ``finalize`` again returns the same
        envelope.
        """
        if self._envelope is not None:
            return dict(self._envelope)

        claims_map = dict(self._object)
        claims_map.pop(SD_ALG, None)
        sd_alg = alg_for_curve(self.group_name)

        claims = [claim_string(key, value) for key, value in claims_map.items()]
        scalar_claims = [scalar_from_str(self.group, claim) for claim in claims]

        params, keypair, accumulator, state = initialize_accumulator(
            self._resolve_key_seed(), self.param_seed, self.group)

        try:
            accumulator = accumulator.add_batch(scalar_claims, keypair.secret_key, state)
        except AccumulatorError as e:
            raise AddBatchError(str(e)) from e

        envelope = {
            ACCUMULATOR_KEY: serialize_accumulator(accumulator),
            # The public key should eventually be resolved from the issuer's DID
            PK_KEY: serialize_pk(keypair.public_key, self.group),
            PARAM_SEED_KEY: str(self.param_seed),
            SD_ALG: sd_alg,
        }

        try:
            witnesses = accumulator.get_membership_witnesses_for_batch(
                scalar_claims, keypair.secret_key, state)
        except AccumulatorError as e:
            raise WitnessBatchError(str(e)) from e

        for claim, witness in zip(claims, witnesses):
            envelope[claim] = serialize_witness(witness, self.group)

        self._envelope = envelope
        logger.info("Issued envelope with %d claim(s), %d concealed (%s)",
                    len(claims), len(self._disclosures), sd_alg)
        return dict(envelope)
