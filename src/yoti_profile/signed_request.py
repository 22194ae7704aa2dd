"""Signed request construction for the Yoti Connect API."""

from __future__ import annotations

import base64
import enum
import logging
import time
import uuid
from typing import Mapping
from urllib.parse import urlsplit

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from yoti_profile import crypto
from yoti_profile.errors import ConfigurationError
from yoti_profile.types import HeaderInput, SignedRequest, VerifyDigestResult

logger = logging.getLogger(__name__)

AUTH_KEY_HEADER = "X-Yoti-Auth-Key"
AUTH_DIGEST_HEADER = "X-Yoti-Auth-Digest"
SDK_HEADER = "X-Yoti-SDK"
SDK_VERSION_HEADER = "X-Yoti-SDK-Version"
CONTENT_TYPE_HEADER = "Content-Type"

SDK_IDENTIFIER = "Python"
SDK_VERSION = "0.1.0"

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


class AuthMode(enum.Enum):
    LEGACY = "legacy"
    CURRENT = "current"


def _header_dict(headers: HeaderInput | None) -> dict[str, str]:
    """Accept a mapping or a sequence of (name, value) pairs."""
    if not headers:
        return {}
    pairs = headers.items() if isinstance(headers, Mapping) else headers
    try:
        return {str(name): str(value) for name, value in pairs}
    except (TypeError, ValueError) as error:
        raise ConfigurationError(f"Malformed request headers: {error}") from error


def _body_bytes(body: bytes | str | None) -> bytes | None:
    if isinstance(body, str):
        return body.encode("utf-8")
    if body is None or isinstance(body, bytes):
        return body
    raise ConfigurationError(f"Unsupported request body type '{type(body).__name__}'")


def _has_header(headers: dict[str, str], name: str) -> bool:
    return any(key.lower() == name.lower() for key in headers)


def validate_base_url(base_url: str) -> str:
    parts = urlsplit(base_url or "")
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(f"Invalid base URL: {base_url!r}")
    return base_url.rstrip("/")


def _with_auth_params(endpoint: str, nonce: str, timestamp: int, mode: AuthMode) -> str:
    auth_params = f"nonce={nonce}&timestamp={timestamp}"
    path, _, query = endpoint.partition("?")
    if not query:
        return f"{path}?{auth_params}"
    if mode is AuthMode.LEGACY:
        return f"{path}?{auth_params}&{query}"
    return f"{path}?{query}&{auth_params}"


def digest_message(method: str, endpoint: str, body: bytes | None, mode: AuthMode) -> bytes:
    """The exact string the server re-computes and checks the signature against."""
    message = f"{method}&{endpoint}"
    if mode is AuthMode.CURRENT and body:
        message += "&" + base64.b64encode(body).decode("ascii")
    return message.encode("utf-8")


def sign_request(
    key: rsa.RSAPrivateKey,
    *,
    base_url: str,
    endpoint: str,
    method: str = "GET",
    headers: HeaderInput | None = None,
    body: bytes | str | None = None,
    mode: AuthMode = AuthMode.CURRENT,
    nonce: str | None = None,
    timestamp: int | None = None,
) -> SignedRequest:
    normalized_method = method.upper()
    if normalized_method not in SUPPORTED_METHODS:
        raise ConfigurationError(f"HTTP method '{method}' is unsupported")

    base = validate_base_url(base_url)
    normalized_headers = _header_dict(headers)
    body_bytes = _body_bytes(body)

    nonce_value = nonce or str(uuid.uuid4())
    timestamp_value = timestamp if timestamp is not None else int(time.time() * 1000)
    signed_endpoint = _with_auth_params(
        "/" + endpoint.lstrip("/"),
        nonce_value,
        timestamp_value,
        mode,
    )

    signature = crypto.sign_digest(
        digest_message(normalized_method, signed_endpoint, body_bytes, mode),
        key,
    )
    normalized_headers[AUTH_DIGEST_HEADER] = crypto.b64encode(signature)

    if mode is AuthMode.LEGACY:
        normalized_headers[AUTH_KEY_HEADER] = crypto.auth_key_header(key)
    else:
        normalized_headers[SDK_HEADER] = SDK_IDENTIFIER
        normalized_headers[SDK_VERSION_HEADER] = f"{SDK_IDENTIFIER}-{SDK_VERSION}"
        if body_bytes and not _has_header(normalized_headers, CONTENT_TYPE_HEADER):
            normalized_headers[CONTENT_TYPE_HEADER] = "application/json"

    logger.debug("Signed %s request (%s mode)", normalized_method, mode.value)

    return SignedRequest(
        url=base + signed_endpoint,
        method=normalized_method,
        endpoint=signed_endpoint,
        headers=normalized_headers,
        body=body_bytes,
        nonce=nonce_value,
        timestamp=timestamp_value,
    )


def verify_signed_request(
    request: SignedRequest,
    public_key: rsa.RSAPublicKey,
    *,
    mode: AuthMode = AuthMode.CURRENT,
    body: bytes | str | None = None,
) -> VerifyDigestResult:
    """Check a signed request the way the platform does.

    ``body`` overrides the request body, so a tampered payload can be checked
    against the digest header that was sent.
    """
    digest_header = request.headers.get(AUTH_DIGEST_HEADER)
    if not digest_header:
        return VerifyDigestResult(valid=False, reason=f"Missing {AUTH_DIGEST_HEADER} header")

    if mode is AuthMode.LEGACY:
        key_header = request.headers.get(AUTH_KEY_HEADER)
        if not key_header:
            return VerifyDigestResult(valid=False, reason=f"Missing {AUTH_KEY_HEADER} header")
        expected_der = public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        if key_header != crypto.b64encode(expected_der):
            return VerifyDigestResult(valid=False, reason="Auth key header does not match public key")

    try:
        signature = crypto.b64decode(digest_header)
    except ValueError:
        return VerifyDigestResult(valid=False, reason="Invalid digest header encoding")

    body_bytes = _body_bytes(body) if body is not None else request.body
    message = digest_message(request.method, request.endpoint, body_bytes, mode)
    if not crypto.verify_digest(message, signature, public_key):
        return VerifyDigestResult(valid=False, reason="Digest signature mismatch")

    return VerifyDigestResult(valid=True)
