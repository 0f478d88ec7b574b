#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/sanitizer.py
"""HTML sanitization boundary.

Everything before :func:`sanitize_html` sees untrusted markup; everything
after it sees only allow-listed tags and attributes. Disallowed tags are
stripped while their text is kept, except for elements whose content is
never legitimate document text (scripts, styles, embedded frames), which
are dropped whole before bleach runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import bleach
from bs4 import BeautifulSoup

from pastedown.constants import (
    ALLOWED_PROTOCOLS,
    BASE_ALLOWED_ATTRS,
    BASE_ALLOWED_TAGS,
    DEFAULT_PARSER,
    FORBIDDEN_ATTRS,
    FORBIDDEN_CONTENT_TAGS,
    IMAGE_ATTRS,
    IMAGE_TAGS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SanitizerConfig:
    """Allow-lists handed to the sanitizer.

    Parameters
    ----------
    allowed_tags : frozenset of str
        Tags that survive sanitization
    allowed_attrs : frozenset of str
        Attributes allowed on any surviving tag
    forbidden_attrs : frozenset of str
        Attributes removed regardless of the allow-list
    forbidden_content_tags : tuple of str
        Tags removed together with their content
    allowed_protocols : frozenset of str
        URL schemes permitted in ``href`` and ``src``
    keep_content : bool, default True
        Keep the text of stripped tags

    """

    allowed_tags: frozenset[str]
    allowed_attrs: frozenset[str]
    forbidden_attrs: frozenset[str]
    forbidden_content_tags: tuple[str, ...]
    allowed_protocols: frozenset[str]
    keep_content: bool = True


def build_sanitizer_config(include_images: bool) -> SanitizerConfig:
    """Build the allow-lists for one conversion.

    Parameters
    ----------
    include_images : bool
        Whether image tags (``img``, ``picture``, ``source``) and their
        attributes are allowed through

    Returns
    -------
    SanitizerConfig
        Configuration for :func:`sanitize_html`

    """
    tags = set(BASE_ALLOWED_TAGS)
    attrs = set(BASE_ALLOWED_ATTRS)
    if include_images:
        tags.update(IMAGE_TAGS)
        attrs.update(IMAGE_ATTRS)
    return SanitizerConfig(
        allowed_tags=frozenset(tags),
        allowed_attrs=frozenset(attrs),
        forbidden_attrs=frozenset(FORBIDDEN_ATTRS),
        forbidden_content_tags=FORBIDDEN_CONTENT_TAGS,
        allowed_protocols=frozenset(ALLOWED_PROTOCOLS),
    )


def _make_attribute_filter(config: SanitizerConfig):
    def filter_attributes(tag: str, name: str, value: str) -> bool:
        lowered = name.lower()
        if lowered in config.forbidden_attrs:
            return False
        # Event handlers and data-* never cross the boundary
        if lowered.startswith("on") or lowered.startswith("data-"):
            return False
        if lowered not in config.allowed_attrs:
            return False
        stripped = value.strip().lower()
        if lowered == "href" and stripped.startswith("data:"):
            return False
        if lowered == "src" and stripped.startswith("data:") and not stripped.startswith("data:image/"):
            return False
        return True

    return filter_attributes


def _drop_forbidden_content(html: str, tags: tuple[str, ...]) -> str:
    soup = BeautifulSoup(html, DEFAULT_PARSER)
    removed = 0
    for element in soup.find_all(list(tags)):
        if getattr(element, "decomposed", False):
            continue
        element.decompose()
        removed += 1
    if removed:
        logger.debug(f"Dropped {removed} element(s) with forbidden content before sanitizing")
    return soup.decode()


def sanitize_html(html: str, config: SanitizerConfig) -> str:
    """Sanitize ``html`` against ``config``.

    Parameters
    ----------
    html : str
        Serialized HTML from the pre-sanitize passes
    config : SanitizerConfig
        Allow-lists to enforce

    Returns
    -------
    str
        Sanitized HTML string

    Raises
    ------
    Exception
        Whatever bleach or the parser raises; the caller classifies it as a
        fatal ``sanitize-failed`` error

    """
    prepared = _drop_forbidden_content(html, config.forbidden_content_tags)
    return bleach.clean(
        prepared,
        tags=config.allowed_tags,
        attributes=_make_attribute_filter(config),
        protocols=config.allowed_protocols,
        strip=config.keep_content,
        strip_comments=True,
    )
