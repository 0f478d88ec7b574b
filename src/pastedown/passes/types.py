#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/types.py
"""Types describing DOM processing passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from bs4 import Tag

from pastedown.options import PassContext, PasteOptions

PassExecute = Callable[[Tag, PasteOptions, PassContext], None]
PassCondition = Callable[[PasteOptions, PassContext], bool]


class PassPhase(str, Enum):
    """Where a pass runs relative to the sanitize boundary and image resolution."""

    PRE_SANITIZE = "pre-sanitize"
    POST_SANITIZE_BEFORE_IMAGES = "post-sanitize-before-images"
    POST_SANITIZE_AFTER_IMAGES = "post-sanitize-after-images"

    @property
    def is_post_sanitize(self) -> bool:
        """Whether the phase runs on sanitized markup."""
        return self is not PassPhase.PRE_SANITIZE


@dataclass(frozen=True)
class ProcessingPass:
    """A named, priority-ordered DOM mutation step.

    Parameters
    ----------
    name : str
        Name used in logs and warning strings
    phase : PassPhase
        Which execution group the pass belongs to
    priority : int
        Ascending execution order; unique per sanitize side
    execute : callable
        ``execute(root, options, context)`` mutating the tree in place
    condition : callable, optional
        ``condition(options, context)``; the pass is skipped when it returns False

    """

    name: str
    phase: PassPhase
    priority: int
    execute: PassExecute = field(compare=False)
    condition: Optional[PassCondition] = field(default=None, compare=False)

    def applies(self, options: PasteOptions, context: PassContext) -> bool:
        """Evaluate the optional condition."""
        return self.condition is None or bool(self.condition(options, context))


@dataclass(frozen=True)
class PassCollections:
    """Sorted pass lists, one per execution group."""

    pre_sanitize: tuple[ProcessingPass, ...]
    post_sanitize_before_images: tuple[ProcessingPass, ...]
    post_sanitize_after_images: tuple[ProcessingPass, ...]

    @property
    def post_sanitize(self) -> tuple[ProcessingPass, ...]:
        """All post-sanitize passes in execution order."""
        return self.post_sanitize_before_images + self.post_sanitize_after_images


@dataclass
class PassRunResult:
    """Outcome of running a batch of passes."""

    warnings: list[str] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)
