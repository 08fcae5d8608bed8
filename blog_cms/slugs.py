"""
Slug helpers shared by the category and post services.

Both functions are pure.  Uniqueness is only as good as the pool the caller
passes in; the unique constraints on ``categories.slug`` and ``posts.slug``
are the final guard.
"""
import re
from collections.abc import Iterable

# Any run of characters outside [a-z0-9] becomes one separator.
_SLUG_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def generate_slug(name: str) -> str:
    """
    Return a URL-safe, lowercase slug derived from *name*.

    >>> generate_slug("Web Development!!")
    'web-development'
    >>> generate_slug("  Next.js  15 ")
    'next-js-15'
    >>> generate_slug("!!!")
    ''
    """
    return _SLUG_SEPARATOR_RE.sub("-", name.lower()).strip("-")


def generate_unique_slug(base_slug: str, existing_slugs: Iterable[str]) -> str:
    """
    Return *base_slug* unchanged when it is free, otherwise the first of
    ``base-2``, ``base-3``, ... that is not in *existing_slugs*.
    """
    taken = set(existing_slugs)
    if base_slug not in taken:
        return base_slug

    # At most len(taken) candidates can collide.
    counter = 2
    while f"{base_slug}-{counter}" in taken:
        counter += 1
    return f"{base_slug}-{counter}"
