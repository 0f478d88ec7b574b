#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/post/__init__.py
"""Passes that run on sanitized HTML."""
