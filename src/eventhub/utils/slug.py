"""URL slug derivation for event names."""

from typing import Optional

from slugify import slugify


def derive_slug(name: Optional[str]) -> str:
    """
    Return the lowercase, URL-safe slug for an event name.

    `"AI Summit"` becomes `"ai-summit"`. Accented characters are transliterated
    and punctuation is dropped. A missing or blank name yields an empty slug.
    """
    if not name:
        return ""
    return slugify(name, lowercase=True)
