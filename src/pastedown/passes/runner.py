#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/runner.py
"""Failure-isolating executor for processing passes."""

from __future__ import annotations

import logging
from typing import Iterable

from bs4 import Tag

from pastedown.options import PassContext, PasteOptions
from pastedown.passes.types import PassRunResult, ProcessingPass

logger = logging.getLogger(__name__)


def run_passes(
    passes: Iterable[ProcessingPass],
    root: Tag,
    options: PasteOptions,
    context: PassContext,
) -> PassRunResult:
    """Run passes in order against ``root``.

    A pass whose condition is false is skipped silently. A pass that raises
    is recorded as a ``"<name>: <message>"`` warning and the batch continues
    with the next pass. Mutations made before the failure are kept.

    Parameters
    ----------
    passes : iterable of ProcessingPass
        Passes, already sorted
    root : Tag
        Document root mutated in place
    options : PasteOptions
        Conversion preferences
    context : PassContext
        Per-conversion facts

    Returns
    -------
    PassRunResult
        Warning strings and the names of passes that ran

    """
    result = PassRunResult()
    for processing_pass in passes:
        if not processing_pass.applies(options, context):
            continue
        try:
            processing_pass.execute(root, options, context)
        except Exception as e:
            message = f"{processing_pass.name}: {e}"
            result.warnings.append(message)
            logger.warning(f"Pass {message}", exc_info=logger.isEnabledFor(logging.DEBUG))
            continue
        result.executed.append(processing_pass.name)
    return result
