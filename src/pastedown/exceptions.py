#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the pastedown library.

This module defines specialized exception classes for the error conditions
that can occur while turning clipboard HTML into Markdown. Only the fatal
classifications reach callers of the pipeline; pass failures and per-image
failures are recovered where they happen.

Exception Hierarchy
-------------------
- PastedownError (base exception)

  - ValidationError (parameter/option validation)

  - PassConfigurationError (malformed pass registry)

  - HtmlProcessingError (fatal pipeline failures)
    - kind == "dom-unavailable"
    - kind == "sanitize-failed"

  - ResourceConversionError (per-image conversion failures)
    - ImageDecodeError (malformed or oversized data URIs)
    - ImageFetchError (network, status, content-type, size)
    - ResourcePersistenceError (store write failures)

  - SecurityError (security violations)
    - NetworkSecurityError (blocked hosts, oversize streams)
    - PathTraversalError (temp paths escaping the data directory)

"""

from __future__ import annotations

from typing import Any

from pastedown.constants import ProcessingErrorKind


class PastedownError(Exception):
    """Base exception class for all pastedown-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(PastedownError):
    """Exception raised for invalid option values.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class PassConfigurationError(PastedownError):
    """Exception raised when the pass registry is inconsistent.

    Raised at registry-build time when two passes on the same side of the
    sanitize boundary share a priority, which would make their relative
    order ambiguous.

    Parameters
    ----------
    message : str
        Description of the configuration problem
    pass_names : tuple of str, optional
        Names of the conflicting passes

    """

    def __init__(self, message: str, pass_names: tuple[str, ...] = ()):
        """Initialize the error with the names of the conflicting passes."""
        super().__init__(message)
        self.pass_names = pass_names


class HtmlProcessingError(PastedownError):
    """Fatal failure of the HTML pipeline.

    The caller is expected to fall back to inserting plain text when this
    is raised.

    Parameters
    ----------
    message : str
        Description of the failure
    kind : {"dom-unavailable", "sanitize-failed"}
        Classification of the failure
    original_error : Exception, optional
        The underlying exception

    Attributes
    ----------
    kind : str
        Classification of the failure

    """

    def __init__(
        self,
        message: str,
        kind: ProcessingErrorKind,
        original_error: Exception | None = None,
    ):
        """Initialize the processing error with its classification."""
        super().__init__(message, original_error=original_error)
        self.kind = kind

    def __str__(self) -> str:
        """Prefix the message with the failure classification."""
        return f"[{self.kind}] {self.message}"


class ResourceConversionError(PastedownError):
    """Failure converting a single image into a persisted resource.

    Never escapes the conversion loop; counted in the ``failed`` metric.
    """


class ImageDecodeError(ResourceConversionError):
    """Exception raised for malformed, non-image or oversized data URIs."""


class ImageFetchError(ResourceConversionError):
    """Exception raised when a remote image cannot be downloaded.

    Parameters
    ----------
    message : str
        Description of the failure
    status_code : int, optional
        HTTP status code, when the server answered
    retryable : bool, default False
        Whether the failure is transient (network error, 408/429/5xx)
    original_error : Exception, optional
        The underlying exception

    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retryable: bool = False,
        original_error: Exception | None = None,
    ):
        """Initialize the fetch error with retry classification."""
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
        self.retryable = retryable


class ResourcePersistenceError(ResourceConversionError):
    """Exception raised when the resource store fails to persist bytes."""


class SecurityError(PastedownError):
    """Base exception for security violations."""


class NetworkSecurityError(SecurityError):
    """Exception raised for blocked network access.

    Covers disabled networking, private address targets, disallowed hosts
    and responses that exceed the streaming size guard.
    """


class PathTraversalError(SecurityError):
    """Exception raised when a synthesized path escapes its base directory."""
