#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/options/paste.py
"""Configuration options for clipboard HTML conversion.

This module defines the per-invocation option objects consumed by the
paste pipeline. All of them are frozen dataclasses: one conversion sees a
single, immutable set of preferences.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pastedown.constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_FETCH_ATTEMPTS,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_PARSER,
    MAX_IMAGE_BYTES,
)
from pastedown.exceptions import ValidationError
from pastedown.options.base import CloneFrozenMixin


@dataclass(frozen=True)
class ImageFetchOptions(CloneFrozenMixin):
    """Limits applied while decoding and downloading images.

    Parameters
    ----------
    max_image_bytes : int
        Maximum decoded size of a single image, for data URIs and downloads alike
    timeout : float
        Deadline in seconds for one remote fetch attempt to deliver its whole
        body; also the per-operation connect and read timeout handed to httpx
    max_attempts : int
        Number of attempts for transient failures (network errors, 408/429/5xx)
    backoff_base : float
        Base delay in seconds for exponential backoff between attempts
    block_private_networks : bool
        Refuse to fetch from hosts resolving to private or reserved addresses
    allowed_hosts : tuple of str or None
        Optional hostname/CIDR allowlist; None allows every host
    user_agent : str or None
        Custom User-Agent header for downloads

    """

    max_image_bytes: int = field(
        default=MAX_IMAGE_BYTES,
        metadata={"help": "Maximum size in bytes of a single image", "importance": "security"},
    )
    timeout: float = field(
        default=DEFAULT_FETCH_TIMEOUT,
        metadata={"help": "Seconds one image fetch attempt may take in total", "importance": "advanced"},
    )
    max_attempts: int = field(
        default=DEFAULT_FETCH_ATTEMPTS,
        metadata={"help": "Attempts for transient fetch failures", "importance": "advanced"},
    )
    backoff_base: float = field(
        default=DEFAULT_BACKOFF_BASE,
        metadata={"help": "Base delay in seconds for exponential retry backoff", "importance": "advanced"},
    )
    block_private_networks: bool = field(
        default=False,
        metadata={"help": "Block image fetches that resolve to private/reserved IPs", "importance": "security"},
    )
    allowed_hosts: tuple[str, ...] | None = field(
        default=None,
        metadata={"help": "Hostnames or CIDR blocks images may be fetched from", "importance": "security"},
    )
    user_agent: str | None = field(
        default=None,
        metadata={"help": "User-Agent header for image downloads", "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate numeric ranges.

        Raises
        ------
        ValidationError
            If any field value is outside its valid range.

        """
        if self.max_image_bytes <= 0:
            raise ValidationError(
                f"max_image_bytes must be positive, got {self.max_image_bytes}",
                parameter_name="max_image_bytes",
                parameter_value=self.max_image_bytes,
            )
        if self.timeout <= 0:
            raise ValidationError(
                f"timeout must be positive, got {self.timeout}",
                parameter_name="timeout",
                parameter_value=self.timeout,
            )
        if self.max_attempts < 1:
            raise ValidationError(
                f"max_attempts must be at least 1, got {self.max_attempts}",
                parameter_name="max_attempts",
                parameter_value=self.max_attempts,
            )
        if self.backoff_base < 0:
            raise ValidationError(
                f"backoff_base must be non-negative, got {self.backoff_base}",
                parameter_name="backoff_base",
                parameter_value=self.backoff_base,
            )


@dataclass(frozen=True)
class PasteOptions(CloneFrozenMixin):
    """User preferences for one paste conversion.

    Parameters
    ----------
    include_images : bool, default True
        Keep images in the output. When False, image tags are not allowed
        through the sanitizer and icon-only links are removed.
    convert_images_to_resources : bool, default False
        Download or decode images and rewrite their ``src`` to persisted
        resource references.
    normalize_quotes : bool, default True
        Fold curly quotes into their ASCII equivalents outside code.
    force_tight_lists : bool, default False
        Drop blank lines between list items in the rendered Markdown.
    parser : str, default "html.parser"
        BeautifulSoup tree builder used to parse HTML.
    image_fetch : ImageFetchOptions
        Limits for image decoding and downloading.

    Examples
    --------
    Strip images from the paste:
        >>> options = PasteOptions(include_images=False)

    Persist pasted images locally:
        >>> options = PasteOptions(convert_images_to_resources=True)

    """

    include_images: bool = field(
        default=True,
        metadata={"help": "Keep images in the converted Markdown", "cli_name": "no-images", "importance": "core"},
    )
    convert_images_to_resources: bool = field(
        default=False,
        metadata={"help": "Persist images as local resources and rewrite their src", "importance": "core"},
    )
    normalize_quotes: bool = field(
        default=True,
        metadata={
            "help": "Replace smart quotes with ASCII quotes outside code",
            "cli_name": "no-normalize-quotes",
            "importance": "core",
        },
    )
    force_tight_lists: bool = field(
        default=False,
        metadata={"help": "Remove blank lines between list items", "importance": "core"},
    )
    parser: str = field(
        default=DEFAULT_PARSER,
        metadata={"help": "BeautifulSoup parser used for HTML", "importance": "advanced"},
    )
    image_fetch: ImageFetchOptions = field(
        default_factory=ImageFetchOptions,
        metadata={"help": "Limits for image decoding and downloading", "importance": "advanced"},
    )


@dataclass(frozen=True)
class PassContext:
    """Per-conversion facts passed to every pass.

    Parameters
    ----------
    is_google_docs : bool, default False
        Whether the clipboard content came from Google Docs.

    """

    is_google_docs: bool = False
