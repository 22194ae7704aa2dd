"""Client for retrieving a user's activity details from an encrypted token."""

from __future__ import annotations

import logging
import os
from typing import Union
from urllib.parse import quote

from cryptography.hazmat.primitives.asymmetric import rsa

from yoti_profile import crypto
from yoti_profile.attributes import AttributeFactory
from yoti_profile.errors import (
    AttributeBuildError,
    ConfigurationError,
    ExtraDataParseError,
    MultiError,
    ReceiptDecryptError,
    RequestError,
)
from yoti_profile.extra_data import ExtraData, parse_extra_data, parse_rfc3339
from yoti_profile.outcome import OutcomeMapper
from yoti_profile.profile import ActivityDetails, ApplicationProfile, UserProfile
from yoti_profile.receipt import ReceiptDecryptor, parse_receipt_response
from yoti_profile.signed_request import AUTH_KEY_HEADER, AuthMode, sign_request, validate_base_url
from yoti_profile.transport import Fetcher, urllib_fetcher
from yoti_profile.types import (
    DetailedFailure,
    GenericFailure,
    ProfileNotFound,
    Receipt,
    Success,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.yoti.com/api/v1"

ActivityOutcome = Union[ActivityDetails, ProfileNotFound, GenericFailure, DetailedFailure]


def _resolve_api_url(explicit: str | None) -> str:
    return explicit or os.environ.get("YOTI_API_URL") or DEFAULT_API_URL


def profile_endpoint(token: str, sdk_id: str) -> str:
    return f"/profile/{quote(token, safe='')}?appId={quote(sdk_id, safe='')}"


class YotiClient:
    def __init__(
        self,
        sdk_id: str,
        key: rsa.RSAPrivateKey | bytes | str,
        *,
        api_url: str | None = None,
        fetcher: Fetcher | None = None,
        auth_mode: AuthMode = AuthMode.CURRENT,
    ):
        if not sdk_id:
            raise ConfigurationError("SDK ID is required")
        self.sdk_id = sdk_id
        self._key = key if isinstance(key, rsa.RSAPrivateKey) else crypto.load_private_key(key)
        self.api_url = validate_base_url(_resolve_api_url(api_url))
        self.auth_mode = auth_mode
        self._fetcher = fetcher or urllib_fetcher
        self._decryptor = ReceiptDecryptor(self._key)
        self._attribute_factory = AttributeFactory()
        self._outcomes = OutcomeMapper()

    def decrypt_token(self, encrypted_token: str) -> str:
        return crypto.decrypt_token(encrypted_token, self._key)

    def get_activity_details(self, encrypted_token: str) -> ActivityOutcome:
        token = self.decrypt_token(encrypted_token)

        headers = {}
        if self.auth_mode is AuthMode.CURRENT:
            headers[AUTH_KEY_HEADER] = crypto.auth_key_header(self._key)

        signed = sign_request(
            self._key,
            base_url=self.api_url,
            endpoint=profile_endpoint(token, self.sdk_id),
            method="GET",
            headers=headers,
            mode=self.auth_mode,
        )

        try:
            response = self._fetcher(signed.url, signed.method, signed.headers, signed.body)
        except Exception as error:  # noqa: BLE001
            raise RequestError(f"Profile request failed: {error}") from error

        not_found = self._outcomes.from_status(response.status_code)
        if not_found is not None:
            return not_found
        if not response.success:
            raise RequestError(
                f"Profile request failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        receipt = parse_receipt_response(response.content)
        outcome = self._outcomes.classify(receipt)
        if not isinstance(outcome, Success):
            return outcome

        return self.activity_details(outcome.receipt)

    def activity_details(self, receipt: Receipt) -> ActivityDetails:
        """Decrypt a successful receipt.

        Key unwrap and profile decryption failures are raised. Failures that
        leave the rest of the receipt usable are collected on
        ``ActivityDetails.error``.
        """
        errors: list[Exception] = []
        receipt_key = self._decryptor.unwrap_key(receipt)

        user_attributes = self._build(self._decryptor.decrypt(receipt, receipt_key), errors)
        application_attributes = self._build(
            self._decryptor.decrypt_application_profile(receipt, receipt_key),
            errors,
        )

        extra_data = self._extra_data(receipt, receipt_key, errors)

        timestamp = None
        try:
            timestamp = parse_rfc3339(receipt.timestamp)
        except ValueError as error:
            errors.append(ValueError(f"Unable to read timestamp {receipt.timestamp!r}: {error}"))

        error = MultiError.from_errors(errors)
        if error is not None:
            logger.warning("Receipt %s decoded with %d error(s)", receipt.receipt_id or "<none>", len(error))

        return ActivityDetails(
            user_profile=UserProfile(user_attributes),
            application_profile=ApplicationProfile(application_attributes),
            remember_me_id=receipt.remember_me_id,
            parent_remember_me_id=receipt.parent_remember_me_id,
            receipt_id=receipt.receipt_id,
            timestamp=timestamp,
            extra_data=extra_data,
            error=error,
        )

    def _build(self, attribute_list, errors: list[Exception]):
        try:
            return self._attribute_factory.build(attribute_list)
        except AttributeBuildError as error:
            errors.append(error)
            return error.attributes

    def _extra_data(self, receipt: Receipt, receipt_key: bytes, errors: list[Exception]) -> ExtraData:
        try:
            raw = self._decryptor.decrypt_extra_data(receipt, receipt_key)
        except ReceiptDecryptError as error:
            errors.append(ExtraDataParseError(f"Unable to decrypt extra data: {error}"))
            return ExtraData()
        try:
            return parse_extra_data(raw)
        except ExtraDataParseError as error:
            errors.append(error)
            return error.extra_data or ExtraData()
