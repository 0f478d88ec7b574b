"""Unit tests for image downloading and network security checks.

All HTTP traffic goes through ``httpx.MockTransport``; no test touches the
network.

Test Coverage:
- URL validation (scheme, hostname, allowlist, private addresses)
- Retry with exponential backoff on transient failures (any 5xx, 408, 429)
- Per-attempt deadline on slow bodies
- Content-type, size and empty-body rejection
- Environment variable controls
"""

import ipaddress

import httpx
import pytest

from pastedown.constants import DEFAULT_USER_AGENT
from pastedown.exceptions import ImageFetchError, NetworkSecurityError
from pastedown.options import ImageFetchOptions
from pastedown.utils.network_security import (
    _is_private_or_reserved_ip,
    _parse_content_type,
    create_http_client,
    fetch_image_bytes,
    is_network_disabled,
    resolve_user_agent,
    validate_url_security,
)

IMAGE_URL = "https://images.example.com/pic.png"


class _Sequence:
    """Mock transport handler replaying a list of responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _png(content=b"\x89PNG data"):
    return httpx.Response(200, headers={"content-type": "image/png"}, content=content)


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def _trickle(chunks):
    """Build a streamed PNG response delivered in ``chunks`` separate pieces."""
    return httpx.Response(200, headers={"content-type": "image/png"}, content=iter([b"x" * 10] * chunks))


@pytest.mark.unit
class TestPrivateIPValidation:
    """Test private and reserved IP address detection."""

    def test_private_ranges(self):
        """Private, loopback and link-local addresses are flagged."""
        assert _is_private_or_reserved_ip(ipaddress.ip_address("10.0.0.1"))
        assert _is_private_or_reserved_ip(ipaddress.ip_address("192.168.1.1"))
        assert _is_private_or_reserved_ip(ipaddress.ip_address("127.0.0.1"))
        assert _is_private_or_reserved_ip(ipaddress.ip_address("169.254.1.1"))
        assert _is_private_or_reserved_ip(ipaddress.ip_address("::1"))

    def test_public_addresses(self):
        """Public addresses pass."""
        assert not _is_private_or_reserved_ip(ipaddress.ip_address("8.8.8.8"))
        assert not _is_private_or_reserved_ip(ipaddress.ip_address("2001:4860:4860::8888"))


@pytest.mark.unit
class TestUrlValidation:
    """Test URL validation before requests."""

    def test_non_http_scheme_rejected(self):
        """Only http and https are allowed."""
        with pytest.raises(NetworkSecurityError, match="Unsupported URL scheme"):
            validate_url_security("ftp://example.com/a.png")

    def test_missing_hostname_rejected(self):
        """URLs without a host are rejected."""
        with pytest.raises(NetworkSecurityError, match="missing hostname"):
            validate_url_security("https:///a.png")

    def test_allowlist_case_insensitive(self):
        """Allowlisted hosts match regardless of case."""
        validate_url_security("https://Images.Example.com/a.png", allowed_hosts=("images.example.com",))

    def test_host_outside_allowlist_rejected(self):
        """Hosts not in the allowlist are refused."""
        with pytest.raises(NetworkSecurityError, match="not in allowlist"):
            validate_url_security("https://other.test/a.png", allowed_hosts=("images.example.com",))

    def test_private_address_blocked(self):
        """Loopback literals are refused when private networks are blocked."""
        with pytest.raises(NetworkSecurityError, match="private/reserved"):
            validate_url_security("http://127.0.0.1/a.png", block_private_networks=True)

    def test_private_address_allowed_by_default(self):
        """Without the block, private addresses are not resolved or refused."""
        validate_url_security("http://127.0.0.1/a.png")


@pytest.mark.unit
class TestHelpers:
    """Test header parsing and client configuration."""

    def test_parse_content_type(self):
        """Parameters are stripped and the type is lowercased."""
        assert _parse_content_type("Image/PNG; charset=utf-8") == "image/png"
        assert _parse_content_type("") == ""

    def test_user_agent_resolution(self, monkeypatch):
        """Explicit value beats the environment, which beats the default."""
        assert resolve_user_agent() == DEFAULT_USER_AGENT
        monkeypatch.setenv("PASTEDOWN_USER_AGENT", "env-agent")
        assert resolve_user_agent() == "env-agent"
        assert resolve_user_agent("explicit") == "explicit"

    def test_client_without_restrictions_has_no_hook(self):
        """No validation hook is installed when nothing is restricted."""
        client = create_http_client(ImageFetchOptions())
        try:
            assert client.event_hooks["request"] == []
            assert client.headers["User-Agent"] == DEFAULT_USER_AGENT
        finally:
            client.close()

    def test_client_with_allowlist_validates_requests(self):
        """An allowlist installs a request hook."""
        client = create_http_client(ImageFetchOptions(allowed_hosts=("images.example.com",)))
        try:
            assert len(client.event_hooks["request"]) == 1
        finally:
            client.close()

    @pytest.mark.parametrize("value,expected", [("1", True), ("true", True), ("ON", True), ("0", False), ("", False)])
    def test_network_disabled_values(self, monkeypatch, value, expected):
        """The kill-switch accepts the usual truthy spellings."""
        monkeypatch.setenv("PASTEDOWN_DISABLE_NETWORK", value)
        assert is_network_disabled() is expected


@pytest.mark.unit
@pytest.mark.network
class TestFetchImageBytes:
    """Test downloads against a mock transport."""

    def test_success(self):
        """A valid image response returns bytes and MIME type."""
        handler = _Sequence(_png(b"abc"))
        with _client(handler) as client:
            fetched = fetch_image_bytes(IMAGE_URL, client=client)
        assert fetched.data == b"abc"
        assert fetched.content_type == "image/png"
        assert handler.requests[0].headers["user-agent"] == DEFAULT_USER_AGENT

    def test_custom_user_agent(self):
        """The configured User-Agent is sent."""
        handler = _Sequence(_png())
        with _client(handler) as client:
            fetch_image_bytes(IMAGE_URL, ImageFetchOptions(user_agent="notes/2.0"), client=client)
        assert handler.requests[0].headers["user-agent"] == "notes/2.0"

    def test_retry_on_503_then_success(self):
        """A transient 503 is retried after a backoff delay."""
        handler = _Sequence(httpx.Response(503), _png(b"ok"))
        delays = []
        with _client(handler) as client:
            fetched = fetch_image_bytes(IMAGE_URL, client=client, sleep=delays.append)
        assert fetched.data == b"ok"
        assert len(handler.requests) == 2
        assert delays == [0.5]

    def test_backoff_grows_exponentially(self):
        """Delays double between attempts and the last error is raised."""
        handler = _Sequence(httpx.Response(503))
        delays = []
        options = ImageFetchOptions(max_attempts=4, backoff_base=0.25)
        with _client(handler) as client:
            with pytest.raises(ImageFetchError) as exc_info:
                fetch_image_bytes(IMAGE_URL, options, client=client, sleep=delays.append)
        assert delays == [0.25, 0.5, 1.0]
        assert len(handler.requests) == 4
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable

    def test_any_5xx_retried(self):
        """Server errors outside the common gateway codes are transient too."""
        handler = _Sequence(httpx.Response(501), _png(b"ok"))
        with _client(handler) as client:
            fetched = fetch_image_bytes(IMAGE_URL, client=client, sleep=lambda _: None)
        assert fetched.data == b"ok"
        assert len(handler.requests) == 2

    def test_404_not_retried(self):
        """Client errors other than 408/429 are final."""
        handler = _Sequence(httpx.Response(404))
        delays = []
        with _client(handler) as client:
            with pytest.raises(ImageFetchError) as exc_info:
                fetch_image_bytes(IMAGE_URL, client=client, sleep=delays.append)
        assert exc_info.value.status_code == 404
        assert not exc_info.value.retryable
        assert len(handler.requests) == 1
        assert delays == []

    def test_429_retried(self):
        """Rate limiting is treated as transient."""
        handler = _Sequence(httpx.Response(429), _png())
        with _client(handler) as client:
            fetch_image_bytes(IMAGE_URL, client=client, sleep=lambda _: None)
        assert len(handler.requests) == 2

    def test_transport_error_retried(self):
        """Connection failures are retried and then reported."""
        handler = _Sequence(httpx.ConnectError("refused"))
        with _client(handler) as client:
            with pytest.raises(ImageFetchError, match="Network error"):
                fetch_image_bytes(IMAGE_URL, ImageFetchOptions(max_attempts=2), client=client, sleep=lambda _: None)
        assert len(handler.requests) == 2

    def test_non_image_content_type_rejected(self):
        """HTML error pages are not accepted as images."""
        handler = _Sequence(httpx.Response(200, headers={"content-type": "text/html"}, content=b"<html>"))
        with _client(handler) as client:
            with pytest.raises(ImageFetchError, match="Invalid content type"):
                fetch_image_bytes(IMAGE_URL, client=client, sleep=lambda _: None)
        assert len(handler.requests) == 1

    def test_declared_length_over_limit(self):
        """A Content-Length above the limit is refused before reading."""
        handler = _Sequence(_png(b"x" * 100))
        with _client(handler) as client:
            with pytest.raises(NetworkSecurityError):
                fetch_image_bytes(IMAGE_URL, ImageFetchOptions(max_image_bytes=10), client=client)

    def test_streamed_body_over_limit(self):
        """Bodies without a Content-Length are capped while streaming."""
        response = httpx.Response(200, headers={"content-type": "image/png"}, stream=httpx.ByteStream(b"x" * 100))
        handler = _Sequence(response)
        with _client(handler) as client:
            with pytest.raises(NetworkSecurityError, match="during streaming"):
                fetch_image_bytes(IMAGE_URL, ImageFetchOptions(max_image_bytes=10), client=client)

    def test_slow_body_hits_deadline(self):
        """A body still trickling in after the timeout is abandoned."""
        ticks = iter(x * 0.5 for x in range(100))
        handler = _Sequence(_trickle(6))
        options = ImageFetchOptions(timeout=1.0, max_attempts=1)
        with _client(handler) as client:
            with pytest.raises(ImageFetchError, match="Timed out") as exc_info:
                fetch_image_bytes(IMAGE_URL, options, client=client, clock=lambda: next(ticks))
        assert exc_info.value.retryable

    def test_deadline_applies_per_attempt(self):
        """A timed-out attempt is retried with a fresh deadline."""
        ticks = iter(x * 0.5 for x in range(100))
        responses = iter([_trickle(6), _trickle(1)])
        requests = []

        def handler(request):
            requests.append(request)
            return next(responses)

        options = ImageFetchOptions(timeout=1.0, max_attempts=2)
        with _client(handler) as client:
            fetched = fetch_image_bytes(
                IMAGE_URL, options, client=client, sleep=lambda _: None, clock=lambda: next(ticks)
            )
        assert fetched.data == b"x" * 10
        assert len(requests) == 2

    def test_empty_body_rejected(self):
        """An empty image body is an error."""
        handler = _Sequence(_png(b""))
        with _client(handler) as client:
            with pytest.raises(ImageFetchError, match="Empty response"):
                fetch_image_bytes(IMAGE_URL, client=client)

    def test_network_disabled(self, monkeypatch):
        """No request is made while networking is disabled."""
        monkeypatch.setenv("PASTEDOWN_DISABLE_NETWORK", "1")
        handler = _Sequence(_png())
        with _client(handler) as client:
            with pytest.raises(NetworkSecurityError, match="globally disabled"):
                fetch_image_bytes(IMAGE_URL, client=client)
        assert handler.requests == []

    def test_invalid_url_not_requested(self):
        """URL validation happens before any request."""
        handler = _Sequence(_png())
        with _client(handler) as client:
            with pytest.raises(NetworkSecurityError):
                fetch_image_bytes("file:///etc/passwd", client=client)
        assert handler.requests == []
