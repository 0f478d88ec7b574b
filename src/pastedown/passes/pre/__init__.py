#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/passes/pre/__init__.py
"""Passes that run on raw clipboard HTML, before the sanitizer."""
