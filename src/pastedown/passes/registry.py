#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/registry.py
"""Static registry of DOM processing passes.

Passes are declared once at import time and never mutated. Every call to
:func:`get_processing_passes` validates and sorts a fresh view, so callers
can rely on ascending priority order within each execution group.

Priorities must be unique per side of the sanitize boundary: the two
post-sanitize groups share one priority space so their combined order is
unambiguous.
"""

from __future__ import annotations

import logging
from typing import Iterable

from bs4 import Tag

from pastedown.exceptions import PassConfigurationError
from pastedown.options import PassContext, PasteOptions
from pastedown.passes.post.anchors import clean_heading_anchors, remove_empty_anchors
from pastedown.passes.post.code_blocks import mark_nbsp_only_inline_code, normalize_code_blocks
from pastedown.passes.post.headings import normalize_headings
from pastedown.passes.post.images import (
    normalize_image_alt_attributes,
    standardize_remaining_images,
    unwrap_all_converted_image_links,
)
from pastedown.passes.post.lists import repair_lists
from pastedown.passes.post.literals import protect_literal_html_tag_mentions
from pastedown.passes.pre.code import neutralize_code_blocks
from pastedown.passes.pre.headings import normalize_heading_structure
from pastedown.passes.pre.images import promote_image_sizing_styles, prune_non_image_anchor_children
from pastedown.passes.pre.text import normalize_text_characters
from pastedown.passes.pre.ui import remove_non_content_ui
from pastedown.passes.pre.wrappers import remove_google_docs_wrappers
from pastedown.passes.types import PassCollections, PassPhase, ProcessingPass

logger = logging.getLogger(__name__)


def _normalize_text(root: Tag, options: PasteOptions, context: PassContext) -> None:
    normalize_text_characters(root, normalize_quotes=options.normalize_quotes)


def _remove_empty_anchors(root: Tag, options: PasteOptions, context: PassContext) -> None:
    remove_empty_anchors(root, include_images=options.include_images)


def _tree_only(func):
    """Adapt a ``func(root)`` normalizer to the pass execute signature."""

    def execute(root: Tag, options: PasteOptions, context: PassContext) -> None:
        func(root)

    execute.__name__ = func.__name__
    execute.__doc__ = func.__doc__
    return execute


def _images_excluded(options: PasteOptions, context: PassContext) -> bool:
    return not options.include_images


def _images_included(options: PasteOptions, context: PassContext) -> bool:
    return options.include_images


def _is_google_docs(options: PasteOptions, context: PassContext) -> bool:
    return context.is_google_docs


PRE_SANITIZE_PASSES: tuple[ProcessingPass, ...] = (
    ProcessingPass("Text normalization", PassPhase.PRE_SANITIZE, 10, _normalize_text),
    ProcessingPass("UI element removal", PassPhase.PRE_SANITIZE, 20, _tree_only(remove_non_content_ui)),
    ProcessingPass("Heading structure", PassPhase.PRE_SANITIZE, 25, _tree_only(normalize_heading_structure)),
    ProcessingPass("Image sizing styles", PassPhase.PRE_SANITIZE, 30, _tree_only(promote_image_sizing_styles)),
    ProcessingPass(
        "Image anchor cleanup", PassPhase.PRE_SANITIZE, 40, _tree_only(prune_non_image_anchor_children)
    ),
    ProcessingPass(
        "Google Docs wrapper removal",
        PassPhase.PRE_SANITIZE,
        50,
        _tree_only(remove_google_docs_wrappers),
        condition=_is_google_docs,
    ),
    ProcessingPass("Code block neutralization", PassPhase.PRE_SANITIZE, 60, _tree_only(neutralize_code_blocks)),
)

POST_SANITIZE_PASSES: tuple[ProcessingPass, ...] = (
    ProcessingPass(
        "Empty anchor removal",
        PassPhase.POST_SANITIZE_BEFORE_IMAGES,
        10,
        _remove_empty_anchors,
        condition=_images_excluded,
    ),
    ProcessingPass(
        "Heading anchor cleanup", PassPhase.POST_SANITIZE_BEFORE_IMAGES, 20, _tree_only(clean_heading_anchors)
    ),
    ProcessingPass(
        "Heading normalization", PassPhase.POST_SANITIZE_BEFORE_IMAGES, 22, _tree_only(normalize_headings)
    ),
    ProcessingPass("List repair", PassPhase.POST_SANITIZE_BEFORE_IMAGES, 25, _tree_only(repair_lists)),
    ProcessingPass("Text normalization (post-sanitize)", PassPhase.POST_SANITIZE_BEFORE_IMAGES, 30, _normalize_text),
    ProcessingPass(
        "Literal HTML tag protection",
        PassPhase.POST_SANITIZE_BEFORE_IMAGES,
        40,
        _tree_only(protect_literal_html_tag_mentions),
    ),
    ProcessingPass(
        "Code block normalization", PassPhase.POST_SANITIZE_BEFORE_IMAGES, 50, _tree_only(normalize_code_blocks)
    ),
    ProcessingPass(
        "NBSP inline code marking", PassPhase.POST_SANITIZE_BEFORE_IMAGES, 60, _tree_only(mark_nbsp_only_inline_code)
    ),
    ProcessingPass(
        "Image alt normalization (pre-conversion)",
        PassPhase.POST_SANITIZE_BEFORE_IMAGES,
        70,
        _tree_only(normalize_image_alt_attributes),
        condition=_images_included,
    ),
    ProcessingPass(
        "Converted image link unwrap",
        PassPhase.POST_SANITIZE_AFTER_IMAGES,
        75,
        _tree_only(unwrap_all_converted_image_links),
        condition=_images_included,
    ),
    ProcessingPass(
        "Image standardization",
        PassPhase.POST_SANITIZE_AFTER_IMAGES,
        80,
        _tree_only(standardize_remaining_images),
        condition=_images_included,
    ),
    ProcessingPass(
        "Image alt normalization",
        PassPhase.POST_SANITIZE_AFTER_IMAGES,
        90,
        _tree_only(normalize_image_alt_attributes),
        condition=_images_included,
    ),
)


def sort_passes(passes: Iterable[ProcessingPass]) -> tuple[ProcessingPass, ...]:
    """Return ``passes`` sorted by ascending priority (stable)."""
    return tuple(sorted(passes, key=lambda p: p.priority))


def validate_priorities(passes: Iterable[ProcessingPass]) -> None:
    """Reject two passes on the same sanitize side sharing a priority.

    Parameters
    ----------
    passes : iterable of ProcessingPass
        Passes to check

    Raises
    ------
    PassConfigurationError
        If two passes on the same side of the sanitize boundary share a priority

    """
    seen: dict[tuple[bool, int], ProcessingPass] = {}
    for processing_pass in passes:
        key = (processing_pass.phase.is_post_sanitize, processing_pass.priority)
        existing = seen.get(key)
        if existing is not None:
            raise PassConfigurationError(
                f'Duplicate priority detected for passes "{existing.name}" and "{processing_pass.name}"',
                pass_names=(existing.name, processing_pass.name),
            )
        seen[key] = processing_pass


def build_pass_collections(passes: Iterable[ProcessingPass]) -> PassCollections:
    """Group and sort arbitrary passes into execution groups.

    Validation only runs when assertions are enabled (``__debug__``).

    Raises
    ------
    PassConfigurationError
        On duplicate priorities, when validation is enabled

    """
    passes = tuple(passes)
    if __debug__:
        validate_priorities(passes)

    def _phase(phase: PassPhase) -> tuple[ProcessingPass, ...]:
        return sort_passes(p for p in passes if p.phase is phase)

    return PassCollections(
        pre_sanitize=_phase(PassPhase.PRE_SANITIZE),
        post_sanitize_before_images=_phase(PassPhase.POST_SANITIZE_BEFORE_IMAGES),
        post_sanitize_after_images=_phase(PassPhase.POST_SANITIZE_AFTER_IMAGES),
    )


def get_processing_passes() -> PassCollections:
    """Return the built-in passes, validated and sorted per execution group."""
    return build_pass_collections(PRE_SANITIZE_PASSES + POST_SANITIZE_PASSES)
