#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Path safety checks for files written while persisting resources.

Functions
---------
- validate_safe_path: Resolve a filename under a base directory, refusing escapes
"""

import logging
import os
from pathlib import Path, PurePosixPath

from pastedown.exceptions import PathTraversalError

logger = logging.getLogger(__name__)


def validate_safe_path(base_dir: str | Path, filename: str) -> Path:
    """Return ``base_dir / filename`` after checking it stays inside ``base_dir``.

    Parameters
    ----------
    base_dir : str or Path
        Directory the file must live in
    filename : str
        Relative file name, possibly derived from untrusted input

    Returns
    -------
    Path
        The resolved absolute path

    Raises
    ------
    PathTraversalError
        If ``filename`` is absolute, contains ``.``/``..`` components, or
        resolves outside ``base_dir``

    Examples
    --------
    >>> validate_safe_path("/tmp/data", "../etc/passwd")  # doctest: +SKIP
    PathTraversalError: Unsafe path component in filename: ../etc/passwd (contains '..')

    """
    normalized_name = filename.replace("\\", "/")

    if len(normalized_name) >= 2 and normalized_name[1] == ":":
        raise PathTraversalError(f"Unsafe Windows absolute path in filename: {filename}")

    rel_path = PurePosixPath(normalized_name)
    if rel_path.is_absolute():
        raise PathTraversalError(f"Unsafe absolute path in filename: {filename}")

    for part in rel_path.parts:
        if part in (".", ".."):
            raise PathTraversalError(f"Unsafe path component in filename: {filename} (contains '{part}')")

    base_path = Path(base_dir).resolve()
    target = base_path.joinpath(*rel_path.parts).resolve()

    base_str = str(base_path)
    target_str = str(target)
    if not target_str.startswith(base_str + os.sep):
        raise PathTraversalError(f"Path escapes base directory: {filename} -> {target_str}")

    return target
