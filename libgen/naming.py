"""Name normalisation.

Turns one free-form library name (``"userProfile"``, ``"user-profile"``,
``"User Profile"``) into the casing variants every generator needs.  All
functions here are pure.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from libgen.errors import ValidationError

_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")
# lower/digit -> Upper ("userProfile", "user2Profile")
_LOWER_UPPER = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
# acronym -> Word ("HTTPServer" -> "HTTP", "Server")
_ACRONYM = re.compile(r"(?<=[A-Z])(?=[A-Z][a-z])")


class NamingVariants(BaseModel):
    """Canonical casings of a single name."""

    model_config = ConfigDict(frozen=True)

    class_name: str
    property_name: str
    file_name: str
    constant_name: str


def tokenize(name: str) -> list[str]:
    """Split *name* into word tokens.

    Splits on any non-alphanumeric run, on lower-to-upper case boundaries and
    between an acronym and the word that follows it.
    """
    tokens: list[str] = []
    for chunk in _SEPARATORS.split(name):
        if not chunk:
            continue
        chunk = _ACRONYM.sub(" ", _LOWER_UPPER.sub(" ", chunk))
        tokens.extend(chunk.split())
    return tokens


def _capitalize(token: str) -> str:
    if token[0].isdigit():
        return token
    return token[0].upper() + token[1:].lower()


def to_class_case(name: str) -> str:
    return "".join(_capitalize(token) for token in tokenize(name))


def to_property_case(name: str) -> str:
    tokens = tokenize(name)
    if not tokens:
        return ""
    return tokens[0].lower() + "".join(_capitalize(token) for token in tokens[1:])


def to_file_case(name: str) -> str:
    return "-".join(token.lower() for token in tokenize(name))


def to_constant_case(name: str) -> str:
    return "_".join(token.upper() for token in tokenize(name))


def to_title(name: str) -> str:
    """``"user-profile"`` -> ``"User Profile"``."""
    return " ".join(_capitalize(token) for token in tokenize(name))


def create_naming_variants(name: str) -> NamingVariants:
    """Derive every casing variant of *name*.

    Raises:
        ValidationError: If *name* is empty, contains no alphanumeric
            characters or starts with a digit.
    """
    if not name or not name.strip():
        raise ValidationError.single("name", "must not be empty", subject="name")
    tokens = tokenize(name)
    if not tokens:
        raise ValidationError.single(
            "name", "must contain at least one letter or digit", subject="name"
        )
    # Class names must be valid identifiers; inner digit tokens are fine.
    if tokens[0][0].isdigit():
        raise ValidationError.single("name", "must start with a letter", subject="name")
    return NamingVariants(
        class_name=to_class_case(name),
        property_name=to_property_case(name),
        file_name=to_file_case(name),
        constant_name=to_constant_case(name),
    )
