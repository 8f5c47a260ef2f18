"""
Group Initialization
====================

This module handles the initialization of the pairing groups used by the
accumulator.

According to charm-crypto documentation (https://jhuisi.github.io/charm/tutorial.html):
- PairingGroup('BN254') provides asymmetric Type-3 pairings with a 254-bit base field
- Alternative curves: 'MNT224', 'SS512' (symmetric, but can be used)
- G1, G2 are the source groups; GT is the target group
- Pairing operation: pair(g1_elem, g2_elem) -> GT element

The curve name also fixes the algorithm tag written into every envelope, so a
verifier can rebuild the same group from the tag alone.
"""

import logging
from functools import lru_cache

from charm.toolbox.pairinggroup import PairingGroup

logger = logging.getLogger(__name__)

SUPPORTED_CURVES = ('BN254', 'MNT224', 'SS512')

# Algorithm tag prefix; the full tag is e.g. "vb-acc+BN254"
ALG_PREFIX = 'vb-acc'


@lru_cache(maxsize=None)
def _load_group(group_name: str) -> PairingGroup:
    return PairingGroup(group_name)


def setup(group_name: str = 'BN254') -> dict:
    """
    Initialize the pairing group.

    Parameters
    ----------
    group_name : str, optional
        The pairing curve identifier. Default is 'BN254'.

    Returns
    -------
    dict
        - 'group': The PairingGroup object
        - 'group_name': The name of the curve actually loaded

    Notes
    -----
    If the requested curve cannot be loaded, BN254 and then SS512 are tried.
    The returned 'group_name' always names the curve in use.
    """
    if group_name not in SUPPORTED_CURVES:
        raise ValueError(f"Unsupported pairing curve: {group_name}")

    candidates = [group_name] + [c for c in ('BN254', 'SS512') if c != group_name]
    last_error = None
    for name in candidates:
        try:
            group = _load_group(name)
        except Exception as e:
            logger.warning("%s not available (%s), trying next curve", name, e)
            last_error = e
            continue
        return {'group': group, 'group_name': name}

    raise RuntimeError(f"No pairing curve could be loaded: {last_error}")


def alg_for_curve(group_name: str) -> str:
    """Algorithm tag written into the `_sd_alg` envelope field."""
    return f"{ALG_PREFIX}+{group_name}"


def curve_for_alg(alg: str) -> str:
    """
    Recover the curve name from an algorithm tag.

    Raises
    ------
    ValueError
        If the tag is not of the form ``vb-acc+<curve>`` with a supported curve.
    """
    prefix, sep, curve = alg.partition('+')
    if prefix != ALG_PREFIX or not sep or curve not in SUPPORTED_CURVES:
        raise ValueError(f"Unknown selective disclosure algorithm: {alg!r}")
    return curve
