from __future__ import annotations
from typing import Optional

from manusmith.dto import AuthorMetadata
from manusmith.errors import InvalidArgument


def _or(value: Optional[str], placeholder: str) -> str:
    return value.strip() if value and value.strip() else placeholder


def render_cover_letter(
    meta: Optional[AuthorMetadata],
    market: str,
    genre: str = "",
    simultaneous: bool = False,
) -> str:
    """
    Short submission cover letter for a magazine or publisher.

    Missing title, word count, author or genre are left as bracketed
    placeholders for the author to fill in; the market is required.
    """
    if not market or not market.strip():
        raise InvalidArgument("Market name is required for a cover letter")
    meta = meta or AuthorMetadata()
    title = _or(meta.title, "[MANUSCRIPT TITLE]")
    words = _or(meta.words, "[WORD COUNT]")
    author = _or(meta.author, "[YOUR NAME]")
    genre = _or(genre, "[genre]")

    letter = (
        f"Dear editors at {market.strip()},\n\n"
        f"Please consider my manuscript, \"{title}\", for publication.\n\n"
        f"It is a {genre} story of approximately {words} words.\n\n"
    )
    if simultaneous:
        letter += "This is a simultaneous submission.\n\n"
    letter += f"Thank you for your time and consideration.\n\nSincerely,\n{author}\n"
    return letter
