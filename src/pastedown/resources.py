#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/resources.py
"""Turn pasted images into persisted resources.

Eligible images (``data:`` URIs and ``http(s)`` URLs) are decoded or
downloaded one at a time, handed to a :class:`ResourceStore`, and their
``src`` rewritten to an opaque ``:/<id>`` reference. A failure affects only
the image it happened on; the element keeps its original ``src`` and the
failure is counted.
"""

from __future__ import annotations

import logging
import re
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx
from bs4 import Tag

from pastedown.constants import CONVERTED_IMAGE_ATTR, RESOURCE_URL_PREFIX
from pastedown.exceptions import ResourceConversionError, ResourcePersistenceError, SecurityError
from pastedown.options import PasteOptions
from pastedown.passes.post.images import standardize_image_element
from pastedown.utils.images import ParsedImageData, download_image, extension_for_mime, parse_base64_image
from pastedown.utils.security import validate_safe_path
from pastedown.utils.text import truncate_for_log

logger = logging.getLogger(__name__)

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


@runtime_checkable
class ResourceStore(Protocol):
    """Destination for persisted image bytes."""

    def is_available(self) -> bool:
        """Return True when resources can be created right now."""
        ...

    def create_resource(self, data: bytes, mime: str, filename: str) -> str:
        """Persist ``data`` and return the new resource id."""
        ...


class TempFileResourceStore:
    """Base store that stages bytes in a temporary file before persisting.

    Subclasses implement :meth:`_persist_file`, which receives the path of
    the staged file and returns the resource id. The staged file is removed
    afterwards whether or not persisting succeeded.

    Parameters
    ----------
    data_dir : str or Path
        Directory in which staging files are written

    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

    def is_available(self) -> bool:
        return self.data_dir.is_dir()

    def _persist_file(self, path: Path, mime: str, filename: str) -> str:
        raise NotImplementedError

    def create_resource(self, data: bytes, mime: str, filename: str) -> str:
        """Stage ``data`` in the data directory and persist it.

        Raises
        ------
        PathTraversalError
            If the staging path escapes the data directory
        ResourcePersistenceError
            If writing or persisting fails

        """
        temp_name = f"pastedown-{uuid.uuid4().hex}.{extension_for_mime(mime)}"
        temp_path = validate_safe_path(self.data_dir, temp_name)
        try:
            try:
                temp_path.write_bytes(data)
            except OSError as e:
                raise ResourcePersistenceError(
                    f"Failed to write temporary file {temp_path}: {e}", original_error=e
                ) from e
            return self._persist_file(temp_path, mime, filename)
        finally:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug(f"Failed to remove temporary file {temp_path}: {e}")


class DirectoryResourceStore(TempFileResourceStore):
    """Store resources as ``<data_dir>/resources/<id>.<ext>`` files.

    Examples
    --------
    >>> store = DirectoryResourceStore("/tmp/notes")  # doctest: +SKIP
    >>> store.create_resource(b"...", "image/png", "cat.png")  # doctest: +SKIP
    '3f2a...'

    """

    def __init__(self, data_dir: str | Path):
        super().__init__(data_dir)
        self.resource_dir = self.data_dir / "resources"

    def _persist_file(self, path: Path, mime: str, filename: str) -> str:
        resource_id = uuid.uuid4().hex
        target = validate_safe_path(self.resource_dir, f"{resource_id}.{extension_for_mime(mime)}")
        try:
            self.resource_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(path, target)
        except OSError as e:
            raise ResourcePersistenceError(f"Failed to store resource {filename}: {e}", original_error=e) from e
        logger.debug(f"Stored resource {resource_id} for {filename} ({mime})")
        return resource_id

    def path_for(self, resource_id: str) -> Path | None:
        """Return the file backing ``resource_id``, or None if it does not exist."""
        if not self.resource_dir.is_dir():
            return None
        for candidate in self.resource_dir.glob(f"{resource_id}.*"):
            return candidate
        return None


@dataclass
class ResourceConversionStats:
    """Counters from one conversion run."""

    attempted: int = 0
    failed: int = 0
    resource_ids: list[str] = field(default_factory=list)


def is_convertible_image_src(src: str) -> bool:
    """Return True for ``data:`` and ``http(s)`` sources not yet converted."""
    if not src or src.startswith(RESOURCE_URL_PREFIX):
        return False
    return src.startswith("data:") or bool(_HTTP_URL.match(src))


def load_image(src: str, options: PasteOptions, client: httpx.Client | None = None) -> ParsedImageData:
    """Decode or download the image referenced by ``src``."""
    if src.startswith("data:"):
        return parse_base64_image(src, max_bytes=options.image_fetch.max_image_bytes)
    return download_image(src, options=options.image_fetch, client=client)


def convert_images_to_resources(
    root: Tag,
    store: ResourceStore,
    options: PasteOptions,
    client: httpx.Client | None = None,
) -> ResourceConversionStats:
    """Rewrite eligible ``<img>`` sources to persisted resource references.

    Images are processed sequentially in document order. On success the
    element is standardized against the decoded or downloaded filename
    (``pasted.png`` for data URIs, the URL basename otherwise), its ``src``
    becomes ``:/<id>`` and it is marked for the link unwrap pass.

    Parameters
    ----------
    root : Tag
        Sanitized document root, modified in place
    store : ResourceStore
        Destination for image bytes
    options : PasteOptions
        Conversion options; ``image_fetch`` carries the limits
    client : httpx.Client, optional
        HTTP client shared by all downloads in this run

    Returns
    -------
    ResourceConversionStats
        Attempted and failed counts plus the created ids

    """
    stats = ResourceConversionStats()
    for img in list(root.select("img[src]")):
        src = str(img.get("src", "")).strip()
        if not is_convertible_image_src(src):
            continue

        stats.attempted += 1
        try:
            image = load_image(src, options, client=client)
            resource_id = store.create_resource(image.data, image.mime, image.filename)
        except (ResourceConversionError, SecurityError, OSError, httpx.HTTPError) as e:
            stats.failed += 1
            logger.warning(f"Failed to convert image {truncate_for_log(src)}: {e}")
            continue

        # alt must be derived before src turns into an opaque resource id
        standardize_image_element(img, image.filename)
        img["src"] = f"{RESOURCE_URL_PREFIX}{resource_id}"
        img[CONVERTED_IMAGE_ATTR] = "true"
        stats.resource_ids.append(resource_id)

    if stats.attempted:
        logger.info(f"Converted {len(stats.resource_ids)} of {stats.attempted} image(s) to resources")
    return stats
