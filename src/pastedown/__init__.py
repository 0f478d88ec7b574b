"""pastedown - Convert clipboard HTML into clean Markdown.

pastedown takes the messy HTML that browsers, chat clients, word processors
and code-hosting sites put on the clipboard and turns it into Markdown
suitable for a note-taking editor.

The core is a pass-based DOM pipeline around a sanitization boundary:

1. Pre-sanitize passes repair structure the sanitizer would otherwise
   destroy (code blocks, rich-editor wrappers, decorated image links).
2. The sanitizer removes everything outside an explicit allow-list.
3. Post-sanitize passes normalize headings, lists, anchors, code block
   languages and images.
4. Optionally, images are decoded or downloaded and stored as local
   resources.
5. The normalized HTML is rendered to Markdown.

Examples
--------
Convert an HTML fragment:

    >>> from pastedown import convert_html_to_markdown
    >>> result = convert_html_to_markdown("<h2>Title</h2><p>Body</p>")
    >>> print(result.markdown)
    ## Title
    <BLANKLINE>
    Body

Drop images:

    >>> from pastedown import PasteOptions
    >>> result = convert_html_to_markdown(html, PasteOptions(include_images=False))  # doctest: +SKIP

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/__init__.py

import logging

from pastedown.api import (
    ConversionResult,
    PasteOutcome,
    convert_clipboard,
    convert_html_to_markdown,
    html_to_plain_text,
    is_google_docs_html,
)
from pastedown.exceptions import (
    HtmlProcessingError,
    ImageDecodeError,
    ImageFetchError,
    NetworkSecurityError,
    PassConfigurationError,
    PastedownError,
    PathTraversalError,
    ResourceConversionError,
    ResourcePersistenceError,
    SecurityError,
    ValidationError,
)
from pastedown.options import ImageFetchOptions, PassContext, PasteOptions
from pastedown.pipeline import ProcessHtmlResult, ResourceConversionMeta, process_html
from pastedown.resources import DirectoryResourceStore, ResourceStore, TempFileResourceStore

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConversionResult",
    "DirectoryResourceStore",
    "HtmlProcessingError",
    "ImageDecodeError",
    "ImageFetchError",
    "ImageFetchOptions",
    "NetworkSecurityError",
    "PassConfigurationError",
    "PassContext",
    "PasteOptions",
    "PasteOutcome",
    "PastedownError",
    "PathTraversalError",
    "ProcessHtmlResult",
    "ResourceConversionError",
    "ResourceConversionMeta",
    "ResourcePersistenceError",
    "ResourceStore",
    "SecurityError",
    "TempFileResourceStore",
    "ValidationError",
    "__version__",
    "convert_clipboard",
    "convert_html_to_markdown",
    "html_to_plain_text",
    "is_google_docs_html",
    "process_html",
]
