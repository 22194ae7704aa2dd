"""Anchor parsing: who vouched for an attribute value, and when."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from cryptography import x509
from cryptography.x509.oid import ObjectIdentifier
from google.protobuf.message import DecodeError

from yoti_profile import protobuf

logger = logging.getLogger(__name__)

SOURCE_OID = ObjectIdentifier("1.3.6.1.4.1.47127.1.1.1")
VERIFIER_OID = ObjectIdentifier("1.3.6.1.4.1.47127.1.1.2")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AnchorType(enum.Enum):
    SOURCE = "SOURCE"
    VERIFIER = "VERIFIER"
    UNKNOWN = "UNKNOWN"


_ANCHOR_TYPES_BY_OID = {
    SOURCE_OID: AnchorType.SOURCE,
    VERIFIER_OID: AnchorType.VERIFIER,
}


@dataclass(frozen=True)
class Anchor:
    anchor_type: AnchorType
    sub_type: str
    value: str
    signed_timestamp: datetime | None
    origin_server_certs: tuple[x509.Certificate, ...] = ()


class AnchorParseError(ValueError):
    pass


def _read_tlv(data: bytes, offset: int = 0) -> tuple[int, bytes, int]:
    if offset + 2 > len(data):
        raise AnchorParseError("Truncated DER element")
    tag = data[offset]
    length = data[offset + 1]
    offset += 2
    if length & 0x80:
        size = length & 0x7F
        if size == 0 or offset + size > len(data):
            raise AnchorParseError("Invalid DER length")
        length = int.from_bytes(data[offset:offset + size], "big")
        offset += size
    end = offset + length
    if end > len(data):
        raise AnchorParseError("Truncated DER element")
    return tag, data[offset:end], end


def _extension_value(der: bytes) -> str:
    """Pull the single string out of an anchor extension.

    The extension is a SEQUENCE holding one string, which may be tagged as
    a UTF8String or with a context tag; constructed tags are unwrapped.
    """
    tag, content, _ = _read_tlv(der)
    while tag & 0x20:
        tag, content, _ = _read_tlv(content)
    return content.decode("utf-8")


def _anchor_values(certs: Iterable[x509.Certificate]) -> tuple[AnchorType, str]:
    for cert in certs:
        for extension in cert.extensions:
            anchor_type = _ANCHOR_TYPES_BY_OID.get(extension.oid)
            if anchor_type is None:
                continue
            raw = extension.value
            if isinstance(raw, x509.UnrecognizedExtension):
                return anchor_type, _extension_value(raw.value)
    return AnchorType.UNKNOWN, ""


def _parse_certificates(raw_certs: Iterable[bytes]) -> tuple[x509.Certificate, ...]:
    certs = []
    for raw in raw_certs:
        try:
            certs.append(x509.load_der_x509_certificate(raw))
        except ValueError as error:
            logger.warning("Skipping unreadable anchor certificate: %s", error)
    return tuple(certs)


def _parse_signed_timestamp(raw: bytes) -> datetime | None:
    if not raw:
        return None
    try:
        message = protobuf.SignedTimestamp.FromString(raw)
    except DecodeError as error:
        raise AnchorParseError(f"Invalid signed timestamp: {error}") from error
    if not message.timestamp:
        return None
    try:
        return _EPOCH + timedelta(microseconds=message.timestamp)
    except (OverflowError, ValueError) as error:
        raise AnchorParseError(f"Signed timestamp {message.timestamp} out of range: {error}") from error


def parse_anchor(proto_anchor) -> Anchor:
    certs = _parse_certificates(proto_anchor.origin_server_certs)
    signed_timestamp = _parse_signed_timestamp(proto_anchor.signed_time_stamp)
    try:
        anchor_type, value = _anchor_values(certs)
    except (UnicodeDecodeError, ValueError) as error:
        raise AnchorParseError(f"Invalid anchor extension: {error}") from error
    return Anchor(
        anchor_type=anchor_type,
        sub_type=proto_anchor.sub_type,
        value=value,
        signed_timestamp=signed_timestamp,
        origin_server_certs=certs,
    )


def parse_anchors(proto_anchors: Iterable) -> tuple[Anchor, ...]:
    """Parse every anchor record, skipping the malformed ones individually."""
    anchors = []
    for proto_anchor in proto_anchors:
        try:
            anchors.append(parse_anchor(proto_anchor))
        except AnchorParseError as error:
            logger.warning("Skipping malformed anchor: %s", error)
    return tuple(anchors)
