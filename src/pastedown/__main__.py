#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/__main__.py
"""Support ``python -m pastedown``, e.g. ``xclip -o -t text/html | python -m pastedown``."""

from pastedown.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
