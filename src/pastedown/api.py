#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/api.py
"""Public conversion API.

Two entry points are provided:

- :func:`convert_html_to_markdown` runs the HTML pipeline and the Markdown
  renderer and returns a :class:`ConversionResult`. Fatal pipeline errors
  propagate as :class:`~pastedown.exceptions.HtmlProcessingError`.
- :func:`convert_clipboard` is the host-facing wrapper. It decides whether
  the clipboard holds HTML at all, falls back to plain text when conversion
  fails, and builds the status message shown to the user.

Examples
--------
Basic conversion:

    >>> from pastedown import convert_html_to_markdown
    >>> convert_html_to_markdown("<p><strong>Hi</strong> there</p>").markdown
    '**Hi** there'

"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

import httpx
from bs4 import BeautifulSoup, NavigableString

from pastedown.constants import BLOCK_TAGS, DEFAULT_PARSER, NBSP
from pastedown.dom import serialize
from pastedown.exceptions import HtmlProcessingError
from pastedown.options import PassContext, PasteOptions
from pastedown.pipeline import ResourceConversionMeta, process_html
from pastedown.renderer import render_markdown
from pastedown.resources import ResourceStore

logger = logging.getLogger(__name__)

GOOGLE_DOCS_CLIPBOARD_FORMAT = "application/x-vnd.google-docs-document-slice-clip+wrapped"
_GOOGLE_DOCS_MARKER = re.compile(r"docs-internal-guid-")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_TRAILING_SPACES = re.compile(r"[ \t]+\n")


@dataclass
class ConversionResult:
    """Markdown produced from clipboard HTML.

    Parameters
    ----------
    markdown : str
        The rendered Markdown
    resources : ResourceConversionMeta
        Image resource conversion metrics
    warnings : list of str
        Non-fatal pass failures, ``"<pass name>: <message>"``
    sanitized_only : bool
        True when the structural passes were skipped and only sanitized
        HTML was rendered

    """

    markdown: str
    resources: ResourceConversionMeta = field(default_factory=ResourceConversionMeta)
    warnings: list[str] = field(default_factory=list)
    sanitized_only: bool = False


@dataclass
class PasteOutcome:
    """What the host should insert and tell the user after a paste."""

    markdown: str
    success: bool
    plain_text_fallback: bool = False
    warnings: list[str] = field(default_factory=list)
    message: str = ""
    resources: ResourceConversionMeta = field(default_factory=ResourceConversionMeta)


def is_google_docs_html(html: str | None, formats: Iterable[str] = ()) -> bool:
    """Detect Google Docs clipboard content.

    Parameters
    ----------
    html : str or None
        Clipboard HTML
    formats : iterable of str
        MIME types advertised by the clipboard

    Returns
    -------
    bool
        True if the Google Docs clipboard type is present or the HTML holds
        a ``docs-internal-guid-`` marker

    """
    if GOOGLE_DOCS_CLIPBOARD_FORMAT in formats:
        return True
    return bool(html) and bool(_GOOGLE_DOCS_MARKER.search(html))


def html_to_plain_text(html: str) -> str:
    """Extract readable text from HTML, one line per block.

    Examples
    --------
    >>> html_to_plain_text("<p>One</p><p>Two<br>Three</p>")
    'One\\nTwo\\nThree'

    """
    soup = BeautifulSoup(html, DEFAULT_PARSER)
    for element in soup.find_all(["script", "style", "template"]):
        element.decompose()
    for br in soup.find_all("br"):
        br.replace_with(NavigableString("\n"))
    for block in soup.find_all(list(BLOCK_TAGS)):
        block.insert_after(NavigableString("\n"))
    text = soup.get_text().replace(NBSP, " ")
    text = _TRAILING_SPACES.sub("\n", text)
    return _EXCESS_NEWLINES.sub("\n\n", text).strip()


def convert_html_to_markdown(
    html: str,
    options: PasteOptions | None = None,
    context: PassContext | None = None,
    *,
    resource_store: ResourceStore | None = None,
    http_client: httpx.Client | None = None,
) -> ConversionResult:
    """Convert clipboard HTML to Markdown.

    Parameters
    ----------
    html : str
        Raw clipboard HTML
    options : PasteOptions, optional
        Conversion preferences
    context : PassContext, optional
        Per-conversion facts such as Google Docs detection
    resource_store : ResourceStore, optional
        Destination for images when ``options.convert_images_to_resources`` is set
    http_client : httpx.Client, optional
        Client used for image downloads

    Returns
    -------
    ConversionResult
        Markdown plus conversion metrics and warnings

    Raises
    ------
    HtmlProcessingError
        If the HTML parser is unavailable or sanitization fails

    """
    options = options or PasteOptions()
    result = process_html(
        html,
        options,
        context,
        resource_store=resource_store,
        http_client=http_client,
    )

    normalized = serialize(result.body) if result.body is not None else (result.sanitized_html or "")
    markdown = render_markdown(
        normalized,
        include_images=options.include_images,
        force_tight_lists=options.force_tight_lists,
    )
    return ConversionResult(
        markdown=markdown,
        resources=result.resources,
        warnings=list(result.warnings),
        sanitized_only=result.sanitized_only,
    )


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def build_paste_message(options: PasteOptions, resources: ResourceConversionMeta) -> str:
    """Build the status message for a successful paste.

    Examples
    --------
    >>> meta = ResourceConversionMeta(resources_created=1, resource_ids=["a"], attempted=2, failed=1)
    >>> build_paste_message(PasteOptions(convert_images_to_resources=True), meta)
    'Pasted as Markdown (converted 1 of 2 images)'

    """
    if not options.include_images:
        return "Pasted as Markdown (images excluded)"

    message = "Pasted as Markdown"
    if options.convert_images_to_resources and resources.attempted > 0:
        if resources.failed > 0:
            message += f" (converted {resources.resources_created} of {_plural(resources.attempted, 'image')})"
        elif resources.resources_created > 0:
            message += f" ({_plural(resources.resources_created, 'image resource')} created)"
    return message


def convert_clipboard(
    html: str | None,
    plain_text: str = "",
    options: PasteOptions | None = None,
    context: PassContext | None = None,
    *,
    formats: Iterable[str] = (),
    resource_store: ResourceStore | None = None,
    http_client: httpx.Client | None = None,
) -> PasteOutcome:
    """Convert clipboard contents for insertion into an editor.

    Parameters
    ----------
    html : str or None
        Clipboard HTML, if any
    plain_text : str
        Clipboard plain text, used when there is no HTML or conversion fails
    options : PasteOptions, optional
        Conversion preferences
    context : PassContext, optional
        Per-conversion facts; detected from ``html`` and ``formats`` when omitted
    formats : iterable of str
        MIME types advertised by the clipboard
    resource_store : ResourceStore, optional
        Destination for converted images
    http_client : httpx.Client, optional
        Client used for image downloads

    Returns
    -------
    PasteOutcome
        Text to insert, success flag and user-facing message

    """
    options = options or PasteOptions()

    if not html or "<" not in html:
        if not plain_text:
            return PasteOutcome(
                markdown="",
                success=False,
                plain_text_fallback=True,
                warnings=["Clipboard empty"],
                message="Clipboard is empty",
            )
        return PasteOutcome(
            markdown=plain_text,
            success=True,
            plain_text_fallback=True,
            message="Pasted plain text (no HTML found)",
        )

    if context is None:
        context = PassContext(is_google_docs=is_google_docs_html(html, formats))

    try:
        result = convert_html_to_markdown(
            html,
            options,
            context,
            resource_store=resource_store,
            http_client=http_client,
        )
    except HtmlProcessingError as e:
        logger.error(f"HTML processing failed; falling back to plain text: {e}")
        fallback = plain_text or html_to_plain_text(html)
        return PasteOutcome(
            markdown=fallback,
            success=False,
            plain_text_fallback=bool(fallback),
            warnings=[e.message],
            message="Conversion failed; pasted plain text" if fallback else "Conversion failed",
        )

    if context.is_google_docs:
        logger.debug("Processed Google Docs content")

    return PasteOutcome(
        markdown=result.markdown,
        success=True,
        warnings=result.warnings,
        message=build_paste_message(options, result.resources),
        resources=result.resources,
    )
