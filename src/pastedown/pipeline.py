#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/pipeline.py
"""Clipboard HTML processing pipeline.

:func:`process_html` owns the sanitize boundary. Raw markup is parsed and
run through the pre-sanitize passes, serialized and sanitized, then
re-parsed and run through the post-sanitize passes. Optional image
resource conversion sits between the two post-sanitize groups.

Failure handling
----------------
- A missing tree builder fails fast with ``dom-unavailable``.
- A failing pass becomes a warning (see :func:`pastedown.passes.run_passes`).
- A failing sanitizer is fatal: ``sanitize-failed``.
- Any other unexpected failure around the passes falls back to sanitizing
  the raw input directly. The result then has ``body=None`` and only
  ``sanitized_html``. If that fallback also fails, ``sanitize-failed`` is
  raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx
from bs4 import FeatureNotFound, Tag
from bs4.builder import builder_registry

from pastedown.dom import parse_fragment, serialize
from pastedown.exceptions import HtmlProcessingError
from pastedown.options import PassContext, PasteOptions
from pastedown.passes import PassCollections, get_processing_passes, run_passes
from pastedown.resources import ResourceStore, convert_images_to_resources
from pastedown.sanitizer import SanitizerConfig, build_sanitizer_config, sanitize_html

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceConversionMeta:
    """Image resource conversion metrics.

    Parameters
    ----------
    resources_created : int
        Number of resources persisted
    resource_ids : list of str
        Ids of the persisted resources, in document order
    attempted : int
        Number of eligible images processed
    failed : int
        Number of eligible images that could not be converted

    """

    resources_created: int = 0
    resource_ids: list[str] = field(default_factory=list)
    attempted: int = 0
    failed: int = 0


@dataclass
class ProcessHtmlResult:
    """Result of :func:`process_html`.

    ``body`` is None only when the structural passes failed and the
    sanitize-only fallback produced ``sanitized_html`` instead.
    """

    body: Tag | None
    sanitized_html: str | None
    resources: ResourceConversionMeta = field(default_factory=ResourceConversionMeta)
    warnings: list[str] = field(default_factory=list)

    @property
    def sanitized_only(self) -> bool:
        """Whether this is a degraded, sanitize-only result."""
        return self.body is None


def _ensure_parser_available(parser: str) -> None:
    if builder_registry.lookup(parser) is None:
        raise HtmlProcessingError(
            f"HTML tree builder {parser!r} is not available",
            kind="dom-unavailable",
        )


def _sanitize(html: str, config: SanitizerConfig) -> str:
    try:
        return sanitize_html(html, config)
    except Exception as e:
        logger.error(f"HTML sanitization failed: {e}")
        raise HtmlProcessingError(f"HTML sanitization failed: {e}", kind="sanitize-failed", original_error=e) from e


def _sanitize_only_fallback(html: str, config: SanitizerConfig, warnings: list[str]) -> ProcessHtmlResult:
    sanitized = _sanitize(html, config)
    return ProcessHtmlResult(body=None, sanitized_html=sanitized, warnings=warnings)


def _convert_images(
    root: Tag,
    options: PasteOptions,
    resource_store: ResourceStore | None,
    http_client: httpx.Client | None,
) -> ResourceConversionMeta:
    if resource_store is None:
        logger.debug("Image conversion requested but no resource store was provided")
        return ResourceConversionMeta()
    if not resource_store.is_available():
        logger.debug("Image conversion requested but the resource store is unavailable")
        return ResourceConversionMeta()

    stats = convert_images_to_resources(root, resource_store, options, client=http_client)
    return ResourceConversionMeta(
        resources_created=len(stats.resource_ids),
        resource_ids=list(stats.resource_ids),
        attempted=stats.attempted,
        failed=stats.failed,
    )


def process_html(
    html: str,
    options: PasteOptions | None = None,
    context: PassContext | None = None,
    *,
    resource_store: ResourceStore | None = None,
    http_client: httpx.Client | None = None,
    passes: PassCollections | None = None,
) -> ProcessHtmlResult:
    """Normalize and sanitize clipboard HTML.

    Parameters
    ----------
    html : str
        Raw clipboard HTML
    options : PasteOptions, optional
        Conversion preferences; defaults to ``PasteOptions()``
    context : PassContext, optional
        Per-conversion facts; defaults to ``PassContext()``
    resource_store : ResourceStore, optional
        Destination for images when ``convert_images_to_resources`` is set
    http_client : httpx.Client, optional
        Client used for image downloads
    passes : PassCollections, optional
        Pass set to run; defaults to the built-in registry

    Returns
    -------
    ProcessHtmlResult
        The normalized body (or sanitize-only HTML), conversion metrics and
        pass warnings

    Raises
    ------
    HtmlProcessingError
        ``dom-unavailable`` when the tree builder is missing,
        ``sanitize-failed`` when sanitization fails

    """
    options = options or PasteOptions()
    context = context or PassContext()
    collections = passes or get_processing_passes()
    config = build_sanitizer_config(options.include_images)
    warnings: list[str] = []

    _ensure_parser_available(options.parser)

    try:
        root = parse_fragment(html, options.parser)
        warnings.extend(run_passes(collections.pre_sanitize, root, options, context).warnings)
        prepared = serialize(root)
    except FeatureNotFound as e:
        raise HtmlProcessingError(str(e), kind="dom-unavailable", original_error=e) from e
    except Exception as e:
        logger.warning(f"Pre-sanitize processing failed, falling back to sanitize-only: {e}")
        return _sanitize_only_fallback(html, config, warnings)

    sanitized = _sanitize(prepared, config)

    try:
        body = parse_fragment(sanitized, options.parser)
        warnings.extend(run_passes(collections.post_sanitize_before_images, body, options, context).warnings)

        resources = ResourceConversionMeta()
        if options.include_images and options.convert_images_to_resources:
            resources = _convert_images(body, options, resource_store, http_client)

        warnings.extend(run_passes(collections.post_sanitize_after_images, body, options, context).warnings)
    except Exception as e:
        logger.warning(f"Post-sanitize processing failed, falling back to sanitize-only: {e}")
        return _sanitize_only_fallback(html, config, warnings)

    return ProcessHtmlResult(body=body, sanitized_html=sanitized, resources=resources, warnings=warnings)
