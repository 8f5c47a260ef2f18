"""
Presentation Format
===================

A CSD presentation is ``<issuer-signed JWT>~<optional key binding JWT>``.

Without key binding the string ends with ``~``. With key binding an empty
segment is kept between the two tokens (``jwt~~kb``) so that the string always
has the three segments the parser requires.
"""

from typing import Optional

from csd.errors import PresentationFormatError


class CsdJwt:
    """
    Attributes
    ----------
    jwt : str
        The issuer-signed token
    key_binding_jwt : str or None
        The optional key binding token
    """

    def __init__(self, jwt: str, key_binding_jwt: Optional[str] = None):
        self.jwt = jwt
        self.key_binding_jwt = key_binding_jwt

    def presentation(self) -> str:
        if self.key_binding_jwt:
            return f"{self.jwt}~~{self.key_binding_jwt}"
        return f"{self.jwt}~"

    @classmethod
    def parse(cls, sd_jwt: str) -> 'CsdJwt':
        """
        Split a presentation into its tokens.

        Raises
        ------
        PresentationFormatError
            With fewer than 2 segments, or fewer than 3 when the string does
            not end with ``~`` (i.e. carries a key binding token)
        """
        segments = sd_jwt.split('~')
        if len(segments) < 2:
            raise PresentationFormatError("CSD-JWT format is invalid, less than 2 segments")

        includes_key_binding = bool(sd_jwt) and not sd_jwt.endswith('~')
        if includes_key_binding and len(segments) < 3:
            raise PresentationFormatError(
                "CSD-JWT format is invalid, less than 3 segments with key binding jwt")

        key_binding = segments[-1] if includes_key_binding else None
        return cls(segments[0], key_binding)

    def __str__(self):
        return self.presentation()

    def __eq__(self, other):
        if not isinstance(other, CsdJwt):
            return NotImplemented
        return (self.jwt, self.key_binding_jwt) == (other.jwt, other.key_binding_jwt)

    def __repr__(self):
        return f"CsdJwt(jwt={self.jwt!r}, key_binding_jwt={self.key_binding_jwt!r})"
