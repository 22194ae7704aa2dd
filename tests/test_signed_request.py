from __future__ import annotations

import time

import pytest

from yoti_profile import crypto
from yoti_profile.errors import ConfigurationError
from yoti_profile.signed_request import (
    AUTH_DIGEST_HEADER,
    AUTH_KEY_HEADER,
    AuthMode,
    sign_request,
    verify_signed_request,
)


def test_current_mode_signs_method_and_endpoint(private_key) -> None:
    signed = sign_request(
        private_key,
        base_url="https://api.yoti.local/api/v1/",
        endpoint="/profile/token-1?appId=sdk-1",
        nonce="nonce-1",
        timestamp=1500000000000,
    )

    assert signed.endpoint == "/profile/token-1?appId=sdk-1&nonce=nonce-1&timestamp=1500000000000"
    assert signed.url == "https://api.yoti.local/api/v1" + signed.endpoint
    assert signed.method == "GET"
    assert signed.body is None
    assert "Content-Type" not in signed.headers
    assert AUTH_KEY_HEADER not in signed.headers
    assert signed.headers["X-Yoti-SDK"] == "Python"

    expected = crypto.sign_digest(f"GET&{signed.endpoint}".encode("utf-8"), private_key)
    assert signed.headers[AUTH_DIGEST_HEADER] == crypto.b64encode(expected)
    assert verify_signed_request(signed, private_key.public_key()).valid is True


def test_current_mode_signs_body_and_detects_tamper(private_key) -> None:
    signed = sign_request(
        private_key,
        base_url="https://api.yoti.local/api/v1",
        endpoint="/sessions",
        method="post",
        body='{"action":"share"}',
    )

    assert signed.method == "POST"
    assert signed.headers["Content-Type"] == "application/json"
    assert verify_signed_request(signed, private_key.public_key()).valid is True

    tampered = verify_signed_request(signed, private_key.public_key(), body='{"action":"steal"}')
    assert tampered.valid is False
    assert tampered.reason is not None
    assert "mismatch" in tampered.reason.lower()


def test_current_mode_keeps_explicit_content_type(private_key) -> None:
    signed = sign_request(
        private_key,
        base_url="https://api.yoti.local",
        endpoint="/sessions",
        method="POST",
        headers=[("content-type", "application/octet-stream")],
        body=b"\x00\x01",
    )

    assert signed.headers["content-type"] == "application/octet-stream"
    assert "Content-Type" not in signed.headers


def test_legacy_mode_puts_auth_params_first_and_sends_auth_key(private_key) -> None:
    signed = sign_request(
        private_key,
        base_url="https://api.yoti.local/api/v1",
        endpoint="/profile/token-1?appId=sdk-1",
        mode=AuthMode.LEGACY,
        nonce="nonce-1",
        timestamp=1500000000000,
    )

    assert signed.endpoint == "/profile/token-1?nonce=nonce-1&timestamp=1500000000000&appId=sdk-1"
    assert signed.headers[AUTH_KEY_HEADER] == crypto.auth_key_header(private_key)
    assert "X-Yoti-SDK" not in signed.headers
    assert verify_signed_request(signed, private_key.public_key(), mode=AuthMode.LEGACY).valid is True


def test_nonce_and_timestamp_are_fresh_per_request(private_key) -> None:
    before = int(time.time() * 1000)
    requests = [
        sign_request(private_key, base_url="https://api.yoti.local", endpoint="/profile/t?appId=s")
        for _ in range(20)
    ]
    after = int(time.time() * 1000)

    assert len({r.nonce for r in requests}) == 20
    assert all(before <= r.timestamp <= after for r in requests)


def test_verify_fails_without_digest_header(private_key) -> None:
    signed = sign_request(private_key, base_url="https://api.yoti.local", endpoint="/profile/t")
    del signed.headers[AUTH_DIGEST_HEADER]

    result = verify_signed_request(signed, private_key.public_key())
    assert result.valid is False
    assert result.reason is not None
    assert "missing" in result.reason.lower()


@pytest.mark.parametrize("base_url", ["", "api.yoti.com", "ftp://api.yoti.com", "https://"])
def test_malformed_base_url_is_a_configuration_error(private_key, base_url) -> None:
    with pytest.raises(ConfigurationError):
        sign_request(private_key, base_url=base_url, endpoint="/profile/t")


def test_unsupported_method_is_a_configuration_error(private_key) -> None:
    with pytest.raises(ConfigurationError):
        sign_request(private_key, base_url="https://api.yoti.local", endpoint="/profile/t", method="TRACE")


@pytest.mark.parametrize(
    ("headers", "body"),
    [
        ([("X-Trace", "1", "extra")], None),
        (None, 42),
    ],
)
def test_malformed_headers_or_body_are_configuration_errors(private_key, headers, body) -> None:
    with pytest.raises(ConfigurationError):
        sign_request(private_key, base_url="https://api.yoti.local", endpoint="/sessions", headers=headers, body=body)
