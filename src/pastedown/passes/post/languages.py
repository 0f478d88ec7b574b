#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/languages.py
"""Recognized syntax-highlighting language identifiers.

The closed set is the highlight.js language list narrowed to the names
Pygments also ships a lexer for, plus the explicit "no highlighting"
marker. Tokens outside the set are discarded rather than guessed.
"""

from __future__ import annotations

from functools import lru_cache

from pastedown.constants import (
    HIGHLIGHT_JS_LANGUAGES,
    LANGUAGE_ALIASES,
    LANGUAGE_TOKEN_PATTERN,
    PLAIN_TEXT_LANGUAGE,
)


@lru_cache(maxsize=1)
def highlight_languages() -> frozenset[str]:
    """Return every recognized language identifier (lowercase).

    A token counts only when it is both a highlight.js language name and
    a Pygments lexer alias.
    """
    from pygments.lexers import get_all_lexers

    pygments_aliases = set()
    for _name, aliases, _filenames, _mimetypes in get_all_lexers():
        pygments_aliases.update(alias.lower() for alias in aliases)
    return frozenset(pygments_aliases & HIGHLIGHT_JS_LANGUAGES) | {PLAIN_TEXT_LANGUAGE}


def is_highlight_language(token: str) -> bool:
    """Return True if ``token`` is a recognized language identifier."""
    return token.lower() in highlight_languages()


def normalize_language_alias(raw: str) -> str | None:
    """Map a raw language token to its canonical identifier.

    Parameters
    ----------
    raw : str
        Token taken from a class name or a label

    Returns
    -------
    str or None
        Canonical identifier, or None for placeholder tokens such as
        "default" and for tokens that cannot be a language name

    Examples
    --------
    >>> normalize_language_alias("JS")
    'javascript'
    >>> normalize_language_alias("plaintext")
    'txt'
    >>> normalize_language_alias("auto") is None
    True

    """
    token = raw.strip().lower()
    if token in LANGUAGE_ALIASES:
        return LANGUAGE_ALIASES[token]
    if not LANGUAGE_TOKEN_PATTERN.match(token):
        return None
    return token


def resolve_language(raw: str) -> str | None:
    """Normalize ``raw`` and keep it only if it is a recognized language."""
    normalized = normalize_language_alias(raw)
    if normalized is None or not is_highlight_language(normalized):
        return None
    return normalized
