#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/pre/ui.py
"""Removal of interactive UI controls copied along with content."""

from __future__ import annotations

import logging

from bs4 import Tag

from pastedown.constants import UI_ROLES
from pastedown.dom import find_all, is_in_code, select_all

logger = logging.getLogger(__name__)


def remove_non_content_ui(root: Tag) -> None:
    """Drop buttons, role-based widgets, form controls and selects.

    Checkbox inputs are kept since they carry task-list state, and
    ``<textarea>`` is kept so its text survives. Elements inside code
    examples are left alone.
    """
    removed = 0

    for button in find_all(root, "button"):
        if not is_in_code(button):
            button.decompose()
            removed += 1

    for el in select_all(root, "[role]"):
        if el.decomposed:
            continue
        role = str(el.get("role", "")).strip().lower()
        if role in UI_ROLES and not is_in_code(el):
            el.decompose()
            removed += 1

    for el in find_all(root, "input"):
        if el.decomposed or is_in_code(el):
            continue
        if str(el.get("type", "")).lower() != "checkbox":
            el.decompose()
            removed += 1

    for el in find_all(root, "select"):
        if not el.decomposed and not is_in_code(el):
            el.decompose()
            removed += 1

    if removed:
        logger.debug(f"Removed {removed} UI element(s)")
