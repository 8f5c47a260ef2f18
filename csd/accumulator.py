"""
Positive Bilinear Map Accumulator
=================================

This module implements the positive dynamic accumulator of Vitto and Biryukov
(VB accumulator) on an asymmetric pairing e: G1 × G2 → GT. It is used to commit
to the set of claims of a credential so that each disclosed claim can be shown
to belong to the committed set without revealing the others.

Key Concepts:
-------------
- Setup parameters (P, P̃): generators of G1 and G2 derived from a 64-bit seed
- Secret key α (issuer only) and public key Q̃ = P̃^α in G2
- Accumulator value V in G1, initially V₀ = P
- Adding y:   V' = V^{y+α}
- Removing y: V' = V^{1/(y+α)}
- Membership witness for y: C = V^{1/(y+α)}

Verification:
-------------
    e(C, P̃^y · Q̃) = e(V, P̃)

which holds if and only if C^{y+α} = V, i.e. y is accumulated in V.

Security:
---------
- Witness unforgeability rests on the q-Strong Diffie-Hellman assumption
- A failed check does not reveal whether the witness, the accumulator, the
  public key or the element was wrong

References:
-----------
Vitto, Biryukov (2020) "Dynamic Universal Accumulator with Batch Update over
Bilinear Groups", Section 3.
"""

import logging
from typing import Iterable, List, Tuple

import numpy as np
from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, pair

from csd.errors import (
    AccumulatorError,
    DuplicateElementError,
    MissingElementError,
    SetupError,
)

logger = logging.getLogger(__name__)

SEED_BITS = 64

_SETUP_G1_TAG = b'csd-setup-P'
_SETUP_G2_TAG = b'csd-setup-P_tilde'
_KEYGEN_TAG = b'csd-keygen'


def check_seed(seed: int) -> int:
    """Return ``seed`` if it fits an unsigned 64-bit integer, else raise ValueError."""
    if not isinstance(seed, int) or isinstance(seed, bool) or not 0 <= seed < 2 ** SEED_BITS:
        raise ValueError(f"Seed must be an unsigned {SEED_BITS}-bit integer, got {seed!r}")
    return seed


class SetupParams:
    """
    Public parameters (P, P̃) of the accumulator.

    The generators are obtained by hashing the output of a PRNG seeded with
    ``seed`` onto G1 and G2, so the same seed on the same curve always gives the
    same parameters.
    """

    def __init__(self, group: PairingGroup, P: G1, P_tilde: G2, seed: int):
        self.group = group
        self.P = P
        self.P_tilde = P_tilde
        self.seed = seed

    @classmethod
    def generate_using_seed(cls, seed: int, group: PairingGroup) -> 'SetupParams':
        """
        Derive the parameters from a 64-bit seed.

        Parameters
        ----------
        seed : int
            Unsigned 64-bit parameter seed
        group : PairingGroup
            The pairing group

        Returns
        -------
        SetupParams
            Parameters for which ``is_valid()`` holds

        Raises
        ------
        SetupError
            If the derived generators are not valid group elements
        """
        rng = np.random.default_rng(check_seed(seed))
        P = group.hash(_SETUP_G1_TAG + rng.bytes(32), G1)
        P_tilde = group.hash(_SETUP_G2_TAG + rng.bytes(32), G2)
        params = cls(group, P, P_tilde, seed)
        if not params.is_valid():
            raise SetupError(f"Parameter generation failed for seed {seed}")
        return params

    def is_valid(self) -> bool:
        group = self.group
        if self.P == group.init(G1, 1) or self.P_tilde == group.init(G2, 1):
            return False
        return bool(group.ismember(self.P)) and bool(group.ismember(self.P_tilde))

    def __eq__(self, other):
        if not isinstance(other, SetupParams):
            return NotImplemented
        return self.P == other.P and self.P_tilde == other.P_tilde

    def __repr__(self):
        return f"SetupParams(seed={self.seed})"


def generate_params(param_seed: int, group: PairingGroup) -> SetupParams:
    return SetupParams.generate_using_seed(param_seed, group)


class SecretKey:
    """
    The accumulator trapdoor α.

    Instances cannot be copied or pickled and never show their value in
    ``repr``; they live only as long as the issuance that created them.
    """

    __slots__ = ('_value',)

    def __init__(self, value: ZR):
        self._value = value

    @property
    def value(self) -> ZR:
        return self._value

    def __copy__(self):
        raise TypeError("SecretKey cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("SecretKey cannot be copied")

    def __reduce__(self):
        raise TypeError("SecretKey cannot be serialized")

    def __repr__(self):
        return "SecretKey(<redacted>)"


class PublicKey:
    """Public key Q̃ = P̃^α in G2."""

    def __init__(self, value: G2):
        self.value = value

    def is_valid(self, params: SetupParams) -> bool:
        group = params.group
        return self.value != group.init(G2, 1) and bool(group.ismember(self.value))

    def __eq__(self, other):
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self.value == other.value

    def __repr__(self):
        return f"PublicKey({self.value})"


class Keypair:
    def __init__(self, secret_key: SecretKey, public_key: PublicKey):
        self.secret_key = secret_key
        self.public_key = public_key

    @classmethod
    def generate_using_seed(cls, seed: int, params: SetupParams) -> 'Keypair':
        """
        Derive a keypair from a 64-bit key seed.

        Notes
        -----
        α is drawn from Z_p \\ {0}; a zero draw is rehashed with a counter.
        """
        group = params.group
        rng = np.random.default_rng(check_seed(seed))
        material = _KEYGEN_TAG + rng.bytes(32)
        alpha = group.hash(material, ZR)
        counter = 0
        while alpha == 0:
            counter += 1
            alpha = group.hash(material + counter.to_bytes(4, 'big'), ZR)
        return cls(SecretKey(alpha), PublicKey(params.P_tilde ** alpha))

    def __repr__(self):
        return f"Keypair(secret_key={self.secret_key!r}, public_key={self.public_key!r})"


class WitnessState:
    """
    In-memory registry of the elements currently accumulated.

    Elements are tracked by their integer representation in Z_p.
    """

    def __init__(self):
        self._members = set()

    def has(self, elem: ZR) -> bool:
        return int(elem) in self._members

    def add(self, elem: ZR):
        self._members.add(int(elem))

    def remove(self, elem: ZR):
        self._members.discard(int(elem))

    def __contains__(self, elem) -> bool:
        return self.has(elem)

    def __len__(self) -> int:
        return len(self._members)


class MembershipWitness:
    """Membership witness C = V^{1/(y+α)} in G1."""

    def __init__(self, value: G1):
        self.value = value

    def __eq__(self, other):
        if not isinstance(other, MembershipWitness):
            return NotImplemented
        return self.value == other.value

    def __repr__(self):
        return f"MembershipWitness({self.value})"


class PositiveAccumulator:
    """
    Positive dynamic accumulator.

    Every mutating operation returns a new ``PositiveAccumulator``; the
    receiver keeps its value. Operations that need the trapdoor take the
    ``SecretKey`` and the issuer's ``WitnessState``.
    """

    def __init__(self, value: G1, group: PairingGroup):
        self.value = value
        self.group = group

    @classmethod
    def initialize(cls, params: SetupParams) -> 'PositiveAccumulator':
        """Empty accumulator V₀ = P."""
        return cls(params.P, params.group)

    def _exponent(self, elem: ZR, secret_key: SecretKey) -> ZR:
        e = elem + secret_key.value
        if e == 0:
            # y = -α: the element would collapse the accumulator
            raise AccumulatorError("Element cannot be accumulated under this key")
        return e

    def add(self, elem: ZR, secret_key: SecretKey, state: WitnessState) -> 'PositiveAccumulator':
        """
        Add one element: V' = V^{y+α}.

        Raises
        ------
        DuplicateElementError
            If the element is already a member
        """
        if state.has(elem):
            raise DuplicateElementError("Element is already present in the accumulator")
        new_value = self.value ** self._exponent(elem, secret_key)
        state.add(elem)
        logger.debug("Accumulator add: %d member(s)", len(state))
        return PositiveAccumulator(new_value, self.group)

    def add_batch(self, elems: Iterable[ZR], secret_key: SecretKey,
                  state: WitnessState) -> 'PositiveAccumulator':
        """
        Add several elements at once: V' = V^{∏(y_i+α)}.

        Notes
        -----
        All elements are checked before anything changes; a duplicate inside the
        batch or an element already in ``state`` aborts the whole batch and
        leaves ``state`` as it was.
        """
        elems = list(elems)
        seen = set()
        for elem in elems:
            key = int(elem)
            if key in seen:
                raise DuplicateElementError("Batch contains the same element more than once")
            if state.has(elem):
                raise DuplicateElementError("Batch element is already present in the accumulator")
            seen.add(key)

        factor = self.group.init(ZR, 1)
        for elem in elems:
            factor *= self._exponent(elem, secret_key)

        new_value = self.value ** factor
        for elem in elems:
            state.add(elem)
        logger.debug("Accumulator add_batch of %d: %d member(s)", len(elems), len(state))
        return PositiveAccumulator(new_value, self.group)

    def remove(self, elem: ZR, secret_key: SecretKey, state: WitnessState) -> 'PositiveAccumulator':
        """
        Remove one element: V' = V^{1/(y+α)}.

        Raises
        ------
        MissingElementError
            If the element is not a member
        """
        if not state.has(elem):
            raise MissingElementError("Element is not present in the accumulator")
        new_value = self.value ** (self._exponent(elem, secret_key) ** -1)
        state.remove(elem)
        logger.debug("Accumulator remove: %d member(s)", len(state))
        return PositiveAccumulator(new_value, self.group)

    def remove_batch(self, elems: Iterable[ZR], secret_key: SecretKey,
                     state: WitnessState) -> 'PositiveAccumulator':
        elems = list(elems)
        seen = set()
        for elem in elems:
            key = int(elem)
            if key in seen or not state.has(elem):
                raise MissingElementError("Batch element is not present in the accumulator")
            seen.add(key)

        factor = self.group.init(ZR, 1)
        for elem in elems:
            factor *= self._exponent(elem, secret_key)

        new_value = self.value ** (factor ** -1)
        for elem in elems:
            state.remove(elem)
        return PositiveAccumulator(new_value, self.group)

    def get_membership_witness(self, elem: ZR, secret_key: SecretKey,
                               state: WitnessState) -> MembershipWitness:
        """
        Compute C = V^{1/(y+α)} for a current member.

        The witness is valid only for this accumulator value.
        """
        if not state.has(elem):
            raise MissingElementError("Element is not present in the accumulator")
        return MembershipWitness(self.value ** (self._exponent(elem, secret_key) ** -1))

    def get_membership_witnesses_for_batch(self, elems: Iterable[ZR], secret_key: SecretKey,
                                           state: WitnessState) -> List[MembershipWitness]:
        """Witnesses in the order of ``elems``; fails on the first non-member."""
        return [self.get_membership_witness(elem, secret_key, state) for elem in elems]

    def verify_membership(self, elem: ZR, witness: MembershipWitness,
                          public_key: PublicKey, params: SetupParams) -> bool:
        """
        Check e(C, P̃^y · Q̃) = e(V, P̃).

        Returns ``False`` for any invalid combination; never raises for a
        well-typed witness and key.
        """
        if not isinstance(witness, MembershipWitness) or not isinstance(public_key, PublicKey):
            return False
        group = params.group
        if not group.ismember(witness.value) or not group.ismember(public_key.value):
            return False
        lhs = pair(witness.value, (params.P_tilde ** elem) * public_key.value)
        rhs = pair(self.value, params.P_tilde)
        return lhs == rhs

    def __eq__(self, other):
        if not isinstance(other, PositiveAccumulator):
            return NotImplemented
        return self.value == other.value

    def __repr__(self):
        return f"PositiveAccumulator({self.value})"


def initialize_accumulator(key_seed: int, param_seed: int, group: PairingGroup
                           ) -> Tuple[SetupParams, Keypair, PositiveAccumulator, WitnessState]:
    """
    Create everything an issuer needs for one credential.

    Parameters
    ----------
    key_seed : int
        Seed of the issuer keypair
    param_seed : int
        Seed of the public setup parameters
    group : PairingGroup
        The pairing group

    Returns
    -------
    params : SetupParams
    keypair : Keypair
    accumulator : PositiveAccumulator
        The empty accumulator V₀ = P
    state : WitnessState
        An empty registry
    """
    params = generate_params(param_seed, group)
    keypair = Keypair.generate_using_seed(key_seed, params)
    if not keypair.public_key.is_valid(params):
        raise SetupError("Generated public key is not valid")
    return params, keypair, PositiveAccumulator.initialize(params), WitnessState()
