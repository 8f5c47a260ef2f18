"""
Demo: accumulator operations and a full CSD issuance / verification round.

Usage:
    python demo_selective_disclosure.py
"""

from csd import setup, initialize_accumulator
from csd.codec import deserialize_accumulator, serialize_accumulator
from csd.errors import MembershipVerificationError
from csd.scalar import scalar_from_str
from csd_decoder import CsdDecoder
from csd_issuer import Issuer
from csd_jwt import CsdJwt
from csd_verifier import Verifier
import csd_utils


def accumulator_demo(curve='BN254'):
    print("=" * 60)
    print("Accumulator operations")
    print("=" * 60)

    group = setup(curve)['group']
    params, keypair, accumulator, state = initialize_accumulator(0, 0, group)
    assert params.is_valid()
    assert keypair.public_key.is_valid(params)

    elem = scalar_from_str(group, "name::Albert Einstein")
    batch_elem = [
        scalar_from_str(group, "address::112 Mercer Street, Princeton, Mercer County, New Jersey, United States"),
        scalar_from_str(group, "birthdate::14/03/1879"),
        scalar_from_str(group, "occupation::Theoretical physicist"),
    ]

    empty = accumulator
    accumulator = accumulator.add(elem, keypair.secret_key, state)
    accumulator = accumulator.remove(elem, keypair.secret_key, state)
    print(f"Add then remove restores the empty accumulator: {accumulator == empty}")

    accumulator = accumulator.add_batch([elem] + batch_elem, keypair.secret_key, state)
    print(f"Members after add_batch: {len(state)}")

    m_wit = accumulator.get_membership_witness(elem, keypair.secret_key, state)
    batch_wit = accumulator.get_membership_witnesses_for_batch(batch_elem, keypair.secret_key, state)
    assert accumulator.verify_membership(elem, m_wit, keypair.public_key, params)
    assert all(accumulator.verify_membership(e, w, keypair.public_key, params)
               for e, w in zip(batch_elem, batch_wit))
    print("All witnesses verify")

    encoded = serialize_accumulator(accumulator)
    print(f"Serialized accumulator: {encoded}")
    print(f"Round trip equal: {deserialize_accumulator(encoded, group) == accumulator}")


def credential_demo():
    print("\n" + "=" * 60)
    print("Credential issuance and verification")
    print("=" * 60)

    claims = {
        "name": "Albert Einstein",
        "birthdate": "14/03/1879",
        "address": {"street": "112 Mercer Street", "city": "Princeton"},
        "occupation": "Theoretical physicist",
    }

    issuer = Issuer()
    presentation, disclosures = issuer.issue(claims, conceal=["/birthdate", "/address/street"])
    print(f"Concealed: {[d.claim_name for d in disclosures]}")

    verifier = Verifier(issuer.get_verifying_key(), CsdDecoder())
    disclosed = verifier.verify_presentation(presentation)
    print(f"Disclosed claims: {disclosed}")

    # A witness moved onto another claim must not verify
    payload, _ = csd_utils.decode_jws(CsdJwt.parse(presentation).jwt, issuer.get_verifying_key())
    claim_keys = [k for k in payload if '::' in k]
    payload[claim_keys[0]], payload[claim_keys[1]] = payload[claim_keys[1]], payload[claim_keys[0]]
    try:
        CsdDecoder(fail_fast=False).validate_object(payload)
    except MembershipVerificationError as e:
        print(f"Swapped witnesses rejected: {e.failed_claims}")


if __name__ == '__main__':
    accumulator_demo()
    credential_demo()
