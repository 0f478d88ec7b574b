#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/__init__.py
"""DOM processing passes, their registry and the failure-isolating runner."""

from pastedown.passes.registry import (
    POST_SANITIZE_PASSES,
    PRE_SANITIZE_PASSES,
    build_pass_collections,
    get_processing_passes,
    sort_passes,
    validate_priorities,
)
from pastedown.passes.runner import run_passes
from pastedown.passes.types import PassCollections, PassPhase, PassRunResult, ProcessingPass

__all__ = [
    "POST_SANITIZE_PASSES",
    "PRE_SANITIZE_PASSES",
    "PassCollections",
    "PassPhase",
    "PassRunResult",
    "ProcessingPass",
    "build_pass_collections",
    "get_processing_passes",
    "run_passes",
    "sort_passes",
    "validate_priorities",
]
