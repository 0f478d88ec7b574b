#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/options/__init__.py
"""Option objects for the paste pipeline."""

from pastedown.options.base import CloneFrozenMixin
from pastedown.options.paste import ImageFetchOptions, PassContext, PasteOptions

__all__ = [
    "CloneFrozenMixin",
    "ImageFetchOptions",
    "PassContext",
    "PasteOptions",
]
