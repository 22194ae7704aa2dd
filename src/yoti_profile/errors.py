"""Error taxonomy for the Yoti profile SDK."""

from __future__ import annotations

from typing import Iterable, Sequence


class YotiError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(YotiError):
    pass


class SigningError(YotiError):
    pass


class InvalidTokenError(YotiError):
    pass


class TokenDecryptError(YotiError):
    pass


class KeyUnwrapError(YotiError):
    pass


class ReceiptDecryptError(YotiError):
    pass


class AttributeListParseError(YotiError):
    pass


class ResponseParseError(YotiError):
    pass


class ExtraDataParseError(YotiError):
    """Extra data could not be fully parsed.

    ``extra_data`` holds whatever was recovered, or None when nothing was.
    """

    def __init__(self, message: str, extra_data=None):
        super().__init__(message)
        self.extra_data = extra_data



class RequestError(YotiError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DateAttributeError(YotiError):
    """A DATE attribute whose value is not a strict YYYY-MM-DD date.

    The attribute is not built, but its anchors are kept here so the
    provenance of the rejected value is not lost.
    """

    def __init__(self, name: str, raw_value: bytes, anchors: Sequence = ()):
        super().__init__(f"Unable to parse date value of attribute '{name}': {raw_value!r}")
        self.name = name
        self.raw_value = raw_value
        self.anchors = tuple(anchors)


class MultiError(YotiError):
    """Ordered list of independent failures raised or returned as one error."""

    def __init__(self, errors: Iterable[Exception]):
        self.errors = tuple(errors)
        super().__init__("; ".join(str(error) for error in self.errors))

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    @classmethod
    def from_errors(cls, errors: Iterable[Exception]) -> MultiError | None:
        collected: list[Exception] = []
        for error in errors:
            if isinstance(error, MultiError):
                collected.extend(error.errors)
            else:
                collected.append(error)
        if not collected:
            return None
        return cls(collected)


class AttributeBuildError(MultiError):
    """Raised by the attribute factory when one or more DATE attributes fail.

    ``attributes`` holds every attribute that was built, in input order.
    """

    def __init__(self, errors: Iterable[Exception], attributes: Sequence = ()):
        super().__init__(errors)
        self.attributes = list(attributes)
