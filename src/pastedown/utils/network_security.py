"""Network utilities for downloading pasted images.

Remote images are fetched with a streamed GET so the size limit is enforced
while bytes arrive, not after the whole body is buffered. Transient failures
(transport errors, 408/429/5xx) are retried with exponential backoff; every
other failure is final.

Functions
---------
- validate_url_security: Scheme, allowlist and optional private-address checks
- create_http_client: httpx client with timeout, User-Agent and redirect validation
- fetch_image_bytes: Download one image with retries and size guards
- is_network_disabled: Global kill-switch via environment variable
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/pastedown/utils/network_security.py

from __future__ import annotations

import ipaddress
import logging
import os
import socket
import time
from dataclasses import dataclass
from email.message import Message
from typing import Callable
from urllib.parse import urlparse

import httpx

from pastedown.constants import DEFAULT_USER_AGENT, NETWORK_DISABLE_ENV, RETRYABLE_STATUS_CODES, USER_AGENT_ENV
from pastedown.exceptions import ImageFetchError, NetworkSecurityError
from pastedown.options import ImageFetchOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchedContent:
    """Bytes downloaded from a URL together with their declared MIME type."""

    data: bytes
    content_type: str
    url: str


def _is_private_or_reserved_ip(ip: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    return ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved or ip.is_multicast


def _resolve_hostname_to_ips(hostname: str) -> list[ipaddress.IPv4Address | ipaddress.IPv6Address]:
    """Resolve hostname to all associated IP addresses.

    Raises
    ------
    NetworkSecurityError
        If resolution fails or yields no usable address

    """
    try:
        addr_infos = socket.getaddrinfo(hostname, None)
    except socket.gaierror as e:
        raise NetworkSecurityError(f"Failed to resolve hostname {hostname}: {e}", original_error=e) from e

    ips = []
    for addr_info in addr_infos:
        try:
            ips.append(ipaddress.ip_address(addr_info[4][0]))
        except ValueError:
            continue
    if not ips:
        raise NetworkSecurityError(f"No valid IP addresses resolved for hostname: {hostname}")
    return ips


def _normalize_hostname(hostname: str) -> str:
    """Normalize a hostname for case-insensitive comparison.

    Examples
    --------
    >>> _normalize_hostname("Example.com")
    'example.com'

    """
    try:
        return hostname.encode("idna").decode("ascii").lower()
    except UnicodeError:
        return hostname.lower()


def _host_allowed(hostname: str, allowed_hosts: tuple[str, ...] | None) -> bool:
    if allowed_hosts is None:
        return True

    networks = []
    for entry in allowed_hosts:
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            if _normalize_hostname(entry) == hostname:
                return True

    if not networks:
        return False
    try:
        resolved_ips = _resolve_hostname_to_ips(hostname)
    except NetworkSecurityError:
        return False
    return any(ip in network for network in networks for ip in resolved_ips)


def _parse_content_type(content_type: str) -> str:
    """Extract the lowercased MIME type from a ``Content-Type`` header.

    Examples
    --------
    >>> _parse_content_type("image/png; charset=utf-8")
    'image/png'

    """
    if not content_type:
        return ""
    msg = Message()
    msg["content-type"] = content_type
    return msg.get_content_type().lower()


def validate_url_security(
    url: str,
    allowed_hosts: tuple[str, ...] | None = None,
    block_private_networks: bool = False,
) -> None:
    """Validate a URL before requesting it.

    Parameters
    ----------
    url : str
        URL to validate
    allowed_hosts : tuple of str, optional
        Hostnames or CIDR blocks; None allows every host
    block_private_networks : bool, default False
        Resolve the host and refuse private, loopback and reserved addresses

    Raises
    ------
    NetworkSecurityError
        If the URL fails validation

    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise NetworkSecurityError(f"Unsupported URL scheme: {parsed.scheme or '(none)'}")

    hostname = parsed.hostname
    if not hostname:
        raise NetworkSecurityError("URL missing hostname")

    normalized_hostname = _normalize_hostname(hostname)
    if not _host_allowed(normalized_hostname, allowed_hosts):
        raise NetworkSecurityError(f"Hostname not in allowlist: {normalized_hostname}")

    if block_private_networks:
        for ip in _resolve_hostname_to_ips(normalized_hostname):
            if _is_private_or_reserved_ip(ip):
                raise NetworkSecurityError(
                    f"Access to private/reserved IP address blocked: {ip} (hostname: {normalized_hostname})"
                )


def _needs_validation(options: ImageFetchOptions) -> bool:
    return options.block_private_networks or options.allowed_hosts is not None


def resolve_user_agent(user_agent: str | None = None) -> str:
    """Return the explicit User-Agent, the environment override, or the default."""
    return user_agent or os.getenv(USER_AGENT_ENV) or DEFAULT_USER_AGENT


def create_http_client(options: ImageFetchOptions) -> httpx.Client:
    """Create an httpx client configured from ``options``.

    When host restrictions are active, every request (redirects included)
    is validated through an event hook.
    """

    def validate_request_url(request: httpx.Request) -> None:
        validate_url_security(
            str(request.url),
            allowed_hosts=options.allowed_hosts,
            block_private_networks=options.block_private_networks,
        )

    event_hooks = {"request": [validate_request_url]} if _needs_validation(options) else {}
    return httpx.Client(
        timeout=options.timeout,
        follow_redirects=True,
        event_hooks=event_hooks,
        headers={"User-Agent": resolve_user_agent(options.user_agent)},
    )


def is_network_disabled() -> bool:
    """Check if network access is globally disabled via environment variable."""
    return os.getenv(NETWORK_DISABLE_ENV, "").lower() in ("true", "1", "yes", "on")


def _is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


def _download_once(
    client: httpx.Client,
    url: str,
    options: ImageFetchOptions,
    clock: Callable[[], float] = time.monotonic,
) -> FetchedContent:
    max_size_bytes = options.max_image_bytes
    deadline = clock() + options.timeout
    try:
        with client.stream(
            "GET",
            url,
            timeout=options.timeout,
            headers={"User-Agent": resolve_user_agent(options.user_agent)},
        ) as response:
            if response.status_code >= 400:
                raise ImageFetchError(
                    f"HTTP {response.status_code} fetching {url}",
                    status_code=response.status_code,
                    retryable=_is_retryable_status(response.status_code),
                )

            content_type = _parse_content_type(response.headers.get("content-type", ""))
            if not content_type.startswith("image/"):
                raise ImageFetchError(f"Invalid content type for image: {content_type or '(missing)'}")

            declared = response.headers.get("content-length")
            if declared:
                try:
                    declared_size = int(declared)
                except ValueError:
                    declared_size = None
                if declared_size is not None and declared_size > max_size_bytes:
                    raise NetworkSecurityError(
                        f"Content-Length too large: {declared_size} bytes (max: {max_size_bytes})"
                    )

            chunks = []
            total_size = 0
            # no chunk_size: the deadline is checked per chunk as it arrives
            for chunk in response.iter_bytes():
                if clock() > deadline:
                    raise ImageFetchError(f"Timed out after {options.timeout}s fetching {url}", retryable=True)
                total_size += len(chunk)
                if total_size > max_size_bytes:
                    raise NetworkSecurityError(f"Response too large: exceeded {max_size_bytes} bytes during streaming")
                chunks.append(chunk)

            if total_size == 0:
                raise ImageFetchError(f"Empty response received from {url}")

            return FetchedContent(data=b"".join(chunks), content_type=content_type, url=url)
    except httpx.TransportError as e:
        raise ImageFetchError(f"Network error fetching {url}: {e}", retryable=True, original_error=e) from e


def fetch_image_bytes(
    url: str,
    options: ImageFetchOptions | None = None,
    client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> FetchedContent:
    """Download an image, retrying transient failures.

    Each attempt must have received its whole body within
    ``options.timeout`` seconds of starting the request. A body that keeps
    trickling bytes past that point is cut off and retried like a network
    error. 5xx responses, 408 and 429 are retried as well.

    Parameters
    ----------
    url : str
        ``http`` or ``https`` URL of the image
    options : ImageFetchOptions, optional
        Size, timeout and retry limits
    client : httpx.Client, optional
        Client to use; one is created (and closed) per call when omitted
    sleep : callable, default time.sleep
        Delay function used between attempts
    clock : callable, default time.monotonic
        Monotonic time source for the per-attempt deadline

    Returns
    -------
    FetchedContent
        The downloaded bytes and MIME type

    Raises
    ------
    NetworkSecurityError
        If networking is disabled, the URL is refused, or the body is too large
    ImageFetchError
        If the download fails after the allowed attempts

    """
    options = options or ImageFetchOptions()

    if is_network_disabled():
        raise NetworkSecurityError(
            f"Network access is globally disabled via {NETWORK_DISABLE_ENV} environment variable"
        )

    validate_url_security(
        url,
        allowed_hosts=options.allowed_hosts,
        block_private_networks=options.block_private_networks,
    )

    owns_client = client is None
    active_client = client if client is not None else create_http_client(options)
    try:
        attempt = 1
        while True:
            try:
                fetched = _download_once(active_client, url, options, clock=clock)
                logger.debug(f"Fetched {len(fetched.data)} bytes from {url}")
                return fetched
            except ImageFetchError as e:
                if not e.retryable or attempt >= options.max_attempts:
                    raise
                delay = options.backoff_base * (2 ** (attempt - 1))
                logger.debug(f"Retrying {url} in {delay:.2f}s (attempt {attempt}/{options.max_attempts}): {e}")
                sleep(delay)
                attempt += 1
    finally:
        if owns_client:
            active_client.close()
