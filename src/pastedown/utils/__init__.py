#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/utils/__init__.py
"""Support utilities for the paste pipeline."""
