"""
Error Types
===========

All errors raised by the CSD core derive from ``CsdError`` (itself a
``ValueError``), grouped by where they originate:

- Structural: malformed paths, envelopes, presentations and disclosures
- Encoding: base64 and group element decoding
- Accumulator domain: duplicate or missing elements, parameter setup
- Verification: one or more witnesses failed the membership check
"""

from typing import List


class CsdError(ValueError):
    """Base class for every error raised by this package."""


# --- structural -----------------------------------------------------------

class InvalidPathError(CsdError):
    """A JSON pointer that does not address an existing field or index."""


class DataTypeMismatchError(CsdError):
    pass


class DeserializationError(CsdError):
    pass


class EnvelopeError(CsdError):
    """A control field of the credential envelope is missing or mis-typed."""


class PresentationFormatError(CsdError):
    pass


class UnsupportedArrayError(CsdError):
    pass


class InvalidDisclosureError(CsdError):
    pass


class InvalidClaimError(CsdError):
    pass


class EncoderStateError(CsdError):
    pass


class TokenSignatureError(CsdError):
    """The outer token is malformed or its signature does not verify."""


# --- encoding -------------------------------------------------------------

class CodecError(CsdError):
    pass


class DecodeError(CodecError):
    """Input is not valid standard base64."""


class FormatError(CodecError):
    """Decoded bytes are not a valid element of the expected group."""


# --- accumulator domain ---------------------------------------------------

class AccumulatorError(CsdError):
    pass


class DuplicateElementError(AccumulatorError):
    pass


class MissingElementError(AccumulatorError):
    pass


class SetupError(AccumulatorError):
    pass


class AddBatchError(AccumulatorError):
    def __init__(self, message: str):
        super().__init__(f"Error in adding batch of elements in accumulator [{message}]")


class WitnessBatchError(AccumulatorError):
    def __init__(self, message: str):
        super().__init__(f"Error in generating batch of witnesses [{message}]")


# --- verification ---------------------------------------------------------

class MembershipVerificationError(CsdError):
    """
    One or more disclosed claims failed the membership check.

    Attributes
    ----------
    failed_claims : List[str]
        The claim strings whose witness did not verify, sorted.
    """

    def __init__(self, failed_claims: List[str]):
        self.failed_claims = sorted(failed_claims)
        super().__init__(
            f"{len(self.failed_claims)} claim(s) failed membership verification: "
            f"{', '.join(self.failed_claims)}"
        )
