"""
CSD: Accumulator-Based Selective Disclosure
===========================================

Cryptographic core of the CSD credential scheme: claims are mapped to scalars,
committed into a positive bilinear accumulator, and each disclosed claim is
shipped with a membership witness that verifiers check with one pairing
equation.

This package uses charm-crypto with Type-3 asymmetric pairing curves.

Modules:
--------
- groups: Pairing group initialization and algorithm tags
- scalar: Claim normalization and hashing into Z_p
- accumulator: Setup parameters, keys, accumulator and witnesses
- codec: base64 serialization of group elements
- errors: Error hierarchy
- config: Environment-driven defaults

Usage:
------
    from csd import setup, initialize_accumulator
    from csd.scalar import scalar_from_claim

    group = setup('BN254')['group']
    params, keypair, acc, state = initialize_accumulator(0, 1, group)
    y = scalar_from_claim(group, 'name', 'Albert Einstein')
    acc = acc.add(y, keypair.secret_key, state)
    w = acc.get_membership_witness(y, keypair.secret_key, state)
    assert acc.verify_membership(y, w, keypair.public_key, params)
"""

__version__ = "0.1.0"

from .groups import setup
from .accumulator import initialize_accumulator

__all__ = ['setup', 'initialize_accumulator']
