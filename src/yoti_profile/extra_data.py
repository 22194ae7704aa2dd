"""Extra data carried by a receipt, such as third-party attribute issuance."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from datetime import datetime

from google.protobuf.message import DecodeError

from yoti_profile import protobuf
from yoti_profile.errors import ExtraDataParseError

logger = logging.getLogger(__name__)

THIRD_PARTY_ATTRIBUTE = 6


@dataclass(frozen=True)
class IssuanceDetails:
    token: str
    expiry_date: datetime | None
    attributes: tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtraData:
    attribute_issuance_details: IssuanceDetails | None = None
    unknown_entry_types: tuple[int, ...] = field(default=())


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, tolerating nanosecond precision."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    date_part, sep, time_part = text.partition("T")
    if sep and "." in time_part:
        seconds, _, rest = time_part.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits, rest = digits + rest[0], rest[1:]
        time_part = f"{seconds}.{digits[:6].ljust(6, '0')}{rest}"
        text = f"{date_part}T{time_part}"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp {value!r} has no UTC offset")
    return parsed


def parse_issuance_details(raw: bytes) -> tuple[IssuanceDetails, ExtraDataParseError | None]:
    """Parse a ThirdPartyAttribute entry.

    An unreadable expiry date does not discard the details: they are
    returned with ``expiry_date`` unset, alongside the date error.
    """
    try:
        message = protobuf.ThirdPartyAttribute.FromString(raw)
    except DecodeError as error:
        raise ExtraDataParseError(f"Unable to parse ThirdPartyAttribute value: {error}") from error

    if not message.issuance_token:
        raise ExtraDataParseError("Issuance token is invalid")

    expiry_date = None
    date_error = None
    expiry_raw = message.issuing_attributes.expiry_date
    if expiry_raw:
        try:
            expiry_date = parse_rfc3339(expiry_raw)
        except ValueError as error:
            logger.warning("Unable to parse expiry date %r: %s", expiry_raw, error)
            date_error = ExtraDataParseError(f"Unable to parse expiry date {expiry_raw!r}: {error}")

    details = IssuanceDetails(
        token=base64.b64encode(message.issuance_token).decode("ascii"),
        expiry_date=expiry_date,
        attributes=tuple(d.name for d in message.issuing_attributes.definitions),
    )
    return details, date_error


def parse_extra_data(raw: bytes) -> ExtraData:
    if not raw:
        return ExtraData()

    try:
        message = protobuf.ExtraData.FromString(raw)
    except DecodeError as error:
        raise ExtraDataParseError(f"Unable to parse extra data: {error}") from error

    issuance = None
    date_error = None
    unknown = []
    for entry in message.list:
        if entry.type == THIRD_PARTY_ATTRIBUTE:
            issuance, date_error = parse_issuance_details(entry.value)
        else:
            unknown.append(int(entry.type))

    extra = ExtraData(attribute_issuance_details=issuance, unknown_entry_types=tuple(unknown))
    if date_error is not None:
        raise ExtraDataParseError(str(date_error), extra_data=extra)
    return extra
