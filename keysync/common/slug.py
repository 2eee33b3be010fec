"""Weblate slug utilities.

Branch names and component names become Weblate slugs, which only allow
ASCII letters, digits, hyphens and underscores. Branch names routinely contain
``/`` (``feature/login``), so they must be slugified before use in API paths.
"""

from __future__ import annotations

import re

_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9_-]+")


def slugify(value: str) -> str:
    """Convert a branch or component name into a Weblate slug.

    Parameters
    ----------
    value:
        Human-readable name such as ``feature/login__42``.

    Returns
    -------
    str
        Lower-case slug, e.g. ``feature-login__42``.

    Raises
    ------
    ValueError
        If nothing slug-worthy remains after conversion.

    Examples
    --------
    >>> slugify("feature/Login__42")
    'feature-login__42'

    """
    slug = _INVALID_SLUG_CHARS.sub("-", value.strip().lower()).strip("-")
    if not slug:
        msg = f"Cannot derive a slug from {value!r}"
        raise ValueError(msg)
    return slug
