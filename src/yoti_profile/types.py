"""Shared SDK datatypes for the Yoti profile SDK."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple, Union


@dataclass(frozen=True)
class SignedRequest:
    url: str
    method: str
    endpoint: str
    headers: dict[str, str]
    body: bytes | None
    nonce: str
    timestamp: int


@dataclass(frozen=True)
class VerifyDigestResult:
    valid: bool
    reason: str | None = None


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    content: bytes
    headers: dict[str, str] | None = None

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class ErrorDetails:
    error_code: str
    description: str | None = None


@dataclass(frozen=True)
class Receipt:
    sharing_outcome: str
    remember_me_id: str = ""
    parent_remember_me_id: str = ""
    timestamp: str = ""
    receipt_id: str = ""
    wrapped_receipt_key: str = ""
    other_party_profile_content: str = ""
    profile_content: str = ""
    extra_data_content: str = ""
    error_details: ErrorDetails | None = None


@dataclass(frozen=True)
class Success:
    receipt: Receipt
    successful = True


@dataclass(frozen=True)
class ProfileNotFound:
    successful = False


@dataclass(frozen=True)
class GenericFailure:
    successful = False


@dataclass(frozen=True)
class DetailedFailure:
    code: str
    description: str | None = None
    successful = False


Outcome = Union[Success, ProfileNotFound, GenericFailure, DetailedFailure]

HeaderInput = Union[Mapping[str, str], Sequence[Tuple[str, str]]]
