"""
String Helpers.

Slug and identifier builders shared by the repositories and services.
"""

from __future__ import annotations

import re
import secrets
import string

__all__ = [
    "generate_share_slug",
    "local_user_id_for_email",
    "slugify",
]

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_RE_NON_ALNUM = re.compile(r"[^a-z0-9]", re.IGNORECASE)

_RE_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")

_SHARE_SLUG_ALPHABET: str = string.ascii_lowercase + string.digits


def slugify(value: str) -> str:
    """Lowercase *value* and collapse every non-alphanumeric run into ``-``.

    ::

        "Smith Family"      -> "smith-family"
        "  Les Dupont!! "   -> "les-dupont"
    """
    return _RE_SLUG_SEPARATORS.sub("-", value.lower()).strip("-")


def generate_share_slug(length: int = 8) -> str:
    """Random lowercase alphanumeric slug used in public wishlist links.

    Uses :mod:`secrets`: the slug is the only thing standing between a
    private wishlist URL and a guess.
    """
    return "".join(secrets.choice(_SHARE_SLUG_ALPHABET) for _ in range(length))


def local_user_id_for_email(email: str) -> str:
    """Deterministic user id the local store assigns to an invited email.

    Every non-alphanumeric character becomes ``-``; case is preserved::

        "Jane.Doe@example.com" -> "user-Jane-Doe-example-com"
    """
    return f"user-{_RE_NON_ALNUM.sub('-', email)}"
