"""Identifier normalization between canonical and implementation names.

Canonical names are the snake_case identifiers a capability is addressed by
over the protocol. Implementation names are the camelCase identifiers the
implementing function or method is expected to carry.
"""

import re

SNAKE_SEPARATOR = "_"

_SNAKE_WORD = re.compile(r"_([a-z])")
_KEBAB_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_KEBAB_SEPARATORS = re.compile(r"[\s_]+")


def to_canonical(identifier: str) -> str:
    """Convert an identifier to its canonical snake_case form.

    An identifier that already contains the snake_case separator is assumed to
    be canonical and returned unchanged. Otherwise every uppercase letter
    starts a new word.

    Examples:
        >>> to_canonical("getWeather")
        'get_weather'
        >>> to_canonical("get_weather")
        'get_weather'
    """
    if SNAKE_SEPARATOR in identifier:
        return identifier

    parts = []
    for index, char in enumerate(identifier):
        if char.isupper():
            if index > 0:
                parts.append(SNAKE_SEPARATOR)
            parts.append(char.lower())
        else:
            parts.append(char)
    return "".join(parts)


def to_implementation_name(canonical: str) -> str:
    """Convert a canonical snake_case name to the camelCase implementation name."""
    return _SNAKE_WORD.sub(lambda match: match.group(1).upper(), canonical)


def to_kebab_case(identifier: str) -> str:
    """Convert an identifier to kebab-case (used for server names)."""
    converted = _KEBAB_BOUNDARY.sub(r"\1-\2", identifier)
    converted = _KEBAB_SEPARATORS.sub("-", converted)
    return converted.strip("-").lower()
