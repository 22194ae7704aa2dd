"""Receipt envelope parsing and decryption."""

from __future__ import annotations

import binascii
import json
from typing import Any

from cryptography.hazmat.primitives.asymmetric import rsa
from google.protobuf.message import DecodeError

from yoti_profile import crypto, protobuf
from yoti_profile.errors import (
    AttributeListParseError,
    KeyUnwrapError,
    ReceiptDecryptError,
    ResponseParseError,
)
from yoti_profile.types import ErrorDetails, Receipt


def _error_details(raw: Any) -> ErrorDetails | None:
    if not isinstance(raw, dict):
        return None
    code = raw.get("error_code")
    if not code:
        return None
    description = raw.get("description")
    return ErrorDetails(
        error_code=str(code),
        description=str(description) if description is not None else None,
    )


def parse_receipt_response(content: bytes | str) -> Receipt:
    try:
        raw = json.loads(content)
    except (ValueError, TypeError) as error:
        raise ResponseParseError(f"Unable to parse profile response: {error}") from error

    if not isinstance(raw, dict) or not isinstance(raw.get("receipt"), dict):
        raise ResponseParseError("Profile response has no receipt")

    receipt = raw["receipt"]
    # error details have been seen both inside the receipt and beside it
    details = _error_details(receipt.get("error_details")) or _error_details(raw.get("error_details"))

    return Receipt(
        sharing_outcome=str(receipt.get("sharing_outcome") or ""),
        remember_me_id=str(receipt.get("remember_me_id") or ""),
        parent_remember_me_id=str(receipt.get("parent_remember_me_id") or ""),
        timestamp=str(receipt.get("timestamp") or ""),
        receipt_id=str(receipt.get("receipt_id") or ""),
        wrapped_receipt_key=str(receipt.get("wrapped_receipt_key") or ""),
        other_party_profile_content=str(receipt.get("other_party_profile_content") or ""),
        profile_content=str(receipt.get("profile_content") or ""),
        extra_data_content=str(receipt.get("extra_data_content") or ""),
        error_details=details,
    )


class ReceiptDecryptor:
    """Unwraps a receipt's AES key and decrypts its content fields.

    Holds only the read-only private key, so one instance can serve
    concurrent calls. Decrypted plaintext is returned, never logged.
    """

    def __init__(self, key: rsa.RSAPrivateKey):
        self._key = key

    def unwrap_key(self, receipt: Receipt) -> bytes:
        try:
            wrapped = crypto.b64decode(receipt.wrapped_receipt_key)
        except (binascii.Error, ValueError) as error:
            raise KeyUnwrapError(f"Unable to decode wrapped receipt key: {error}") from error
        if not wrapped:
            raise KeyUnwrapError("Wrapped receipt key is empty")

        try:
            return crypto.decrypt_rsa(wrapped, self._key)
        except (ValueError, TypeError) as error:
            raise KeyUnwrapError(f"Unable to unwrap receipt key: {error}") from error

    def decrypt_content(self, content: str, receipt_key: bytes) -> bytes:
        """Decrypt one base64 ``EncryptedData`` field; empty content gives ``b""``."""
        if not content:
            return b""

        try:
            envelope = protobuf.EncryptedData.FromString(crypto.b64decode(content))
        except (binascii.Error, ValueError, DecodeError) as error:
            raise ReceiptDecryptError(f"Unable to read encrypted content: {error}") from error

        try:
            return crypto.decipher_aes_cbc(receipt_key, envelope.iv, envelope.cipher_text)
        except (ValueError, TypeError) as error:
            raise ReceiptDecryptError(f"Unable to decrypt receipt content: {error}") from error

    def _attribute_list(self, content: str, receipt_key: bytes):
        plaintext = self.decrypt_content(content, receipt_key)
        try:
            return protobuf.AttributeList.FromString(plaintext)
        except DecodeError as error:
            raise AttributeListParseError(f"Unable to parse attribute list: {error}") from error

    def decrypt(self, receipt: Receipt, receipt_key: bytes | None = None):
        """Return the other party's ``AttributeList`` (empty when nothing was shared)."""
        if receipt_key is None:
            receipt_key = self.unwrap_key(receipt)
        return self._attribute_list(receipt.other_party_profile_content, receipt_key)

    def decrypt_application_profile(self, receipt: Receipt, receipt_key: bytes | None = None):
        if receipt_key is None:
            receipt_key = self.unwrap_key(receipt)
        return self._attribute_list(receipt.profile_content, receipt_key)

    def decrypt_extra_data(self, receipt: Receipt, receipt_key: bytes | None = None) -> bytes:
        if receipt_key is None:
            receipt_key = self.unwrap_key(receipt)
        return self.decrypt_content(receipt.extra_data_content, receipt_key)
