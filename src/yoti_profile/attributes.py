"""Typed attributes built from a decrypted attribute list."""

from __future__ import annotations

import enum
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from google.protobuf.message import DecodeError

from yoti_profile import protobuf
from yoti_profile.anchors import Anchor, AnchorType, parse_anchors
from yoti_profile.errors import AttributeBuildError, DateAttributeError

logger = logging.getLogger(__name__)


class ContentType(enum.IntEnum):
    UNDEFINED = 0
    STRING = 1
    JPEG = 2
    DATE = 3
    PNG = 4
    JSON = 5
    MULTI_VALUE = 6
    INT = 7


@dataclass(frozen=True)
class Image:
    content_type: ContentType
    data: bytes

    @property
    def mime_type(self) -> str:
        return "image/png" if self.content_type is ContentType.PNG else "image/jpeg"


@dataclass(frozen=True)
class OpaqueValue:
    """Raw bytes of a value whose content type could not be interpreted."""

    content_type: int
    data: bytes


@dataclass(frozen=True)
class MultiValueItem:
    content_type: ContentType | int
    value: Any


@dataclass(frozen=True)
class Attribute:
    name: str
    content_type: ContentType | int
    value: Any
    anchors: tuple[Anchor, ...] = ()

    @property
    def base_name(self) -> str:
        return self.name.split(":", 1)[0]

    @property
    def sources(self) -> tuple[Anchor, ...]:
        return tuple(a for a in self.anchors if a.anchor_type is AnchorType.SOURCE)

    @property
    def verifiers(self) -> tuple[Anchor, ...]:
        return tuple(a for a in self.anchors if a.anchor_type is AnchorType.VERIFIER)


class ValueConversionError(ValueError):
    pass


_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(raw: bytes) -> datetime:
    """Strict ``YYYY-MM-DD``, returned as UTC midnight."""
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError as error:
        raise ValueConversionError("Date value is not ASCII") from error
    if not _DATE_PATTERN.match(text):
        raise ValueConversionError(f"Date value {text!r} is not YYYY-MM-DD")
    try:
        return datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError as error:
        raise ValueConversionError(str(error)) from error


def _text(raw: bytes, _content_type: ContentType) -> str:
    return raw.decode("utf-8")


def _date(raw: bytes, _content_type: ContentType) -> datetime:
    return parse_date(raw)


def _image(raw: bytes, content_type: ContentType) -> Image:
    return Image(content_type=content_type, data=bytes(raw))


def _json(raw: bytes, _content_type: ContentType) -> Any:
    return json.loads(raw.decode("utf-8"))


def _int(raw: bytes, _content_type: ContentType) -> int:
    return int(raw.decode("ascii"))


Converter = Callable[[bytes, ContentType], Any]


class AttributeFactory:
    """Turns ``AttributeList`` records into :class:`Attribute` values.

    Dispatch goes through ``converters``, one entry per known content type;
    anything missing from it becomes an :class:`OpaqueValue`. A conversion
    failure also falls back to an opaque value, except for DATE: a bad date
    is not built at all and is reported through :class:`AttributeBuildError`
    once the rest of the list has been processed.
    """

    def __init__(self, converters: Mapping[ContentType, Converter] | None = None):
        if converters is None:
            converters = {
                ContentType.STRING: _text,
                ContentType.DATE: _date,
                ContentType.JPEG: _image,
                ContentType.PNG: _image,
                ContentType.JSON: _json,
                ContentType.INT: _int,
                ContentType.MULTI_VALUE: self._multi_value,
            }
        self._converters = dict(converters)

    @staticmethod
    def _content_type(tag: int) -> ContentType | int:
        try:
            return ContentType(tag)
        except ValueError:
            return tag

    def _convert(self, raw: bytes, content_type: ContentType | int) -> Any:
        converter = self._converters.get(content_type)
        if converter is None:
            return OpaqueValue(content_type=int(content_type), data=bytes(raw))
        try:
            return converter(raw, content_type)
        except (ValueError, DecodeError) as error:
            if content_type is ContentType.DATE:
                raise
            logger.warning("Falling back to an opaque %s value: %s", content_type.name, error)
            return OpaqueValue(content_type=int(content_type), data=bytes(raw))

    def _multi_value(self, raw: bytes, _content_type: ContentType) -> tuple[MultiValueItem, ...]:
        message = protobuf.MultiValue.FromString(raw)
        items = []
        for item in message.values:
            item_type = self._content_type(item.content_type)
            items.append(MultiValueItem(content_type=item_type, value=self._convert(item.data, item_type)))
        return tuple(items)

    def build_one(self, record) -> Attribute:
        anchors = parse_anchors(record.anchors)
        content_type = self._content_type(record.content_type)
        try:
            value = self._convert(record.value, content_type)
        except ValueError as error:
            logger.warning("Unable to build date attribute %r: %s", record.name, error)
            raise DateAttributeError(record.name, bytes(record.value), anchors) from error
        return Attribute(name=record.name, content_type=content_type, value=value, anchors=anchors)

    def build(self, records: Iterable) -> list[Attribute]:
        """Build every record in order; accepts an ``AttributeList`` or its records."""
        if hasattr(records, "attributes"):
            records = records.attributes

        attributes: list[Attribute] = []
        failures: list[Exception] = []
        for record in records:
            try:
                attributes.append(self.build_one(record))
            except DateAttributeError as error:
                failures.append(error)

        if failures:
            raise AttributeBuildError(failures, attributes)
        return attributes
