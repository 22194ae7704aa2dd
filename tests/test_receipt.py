from __future__ import annotations

import base64
import json
import os

import pytest

from yoti_profile import protobuf
from yoti_profile.attributes import ContentType
from yoti_profile.errors import (
    AttributeListParseError,
    KeyUnwrapError,
    ReceiptDecryptError,
    ResponseParseError,
)
from yoti_profile.receipt import ReceiptDecryptor, parse_receipt_response
from yoti_profile.types import Receipt

from helpers import attribute, attribute_list, encrypt_content, receipt_json, rsa_encrypt


def _receipt(private_key, aes_key: bytes, **fields) -> Receipt:
    wrapped = base64.b64encode(rsa_encrypt(private_key.public_key(), aes_key)).decode("ascii")
    return Receipt(sharing_outcome="SUCCESS", wrapped_receipt_key=wrapped, **fields)


def test_decrypt_returns_attribute_list(private_key) -> None:
    aes_key = os.urandom(32)
    attributes = attribute_list(
        attribute("given_names", b"Jane", ContentType.STRING),
        attribute("date_of_birth", b"1990-02-03", ContentType.DATE),
    )
    receipt = _receipt(
        private_key,
        aes_key,
        other_party_profile_content=encrypt_content(aes_key, attributes.SerializeToString()),
    )

    result = ReceiptDecryptor(private_key).decrypt(receipt)

    assert [a.name for a in result.attributes] == ["given_names", "date_of_birth"]
    assert result.attributes[0].value == b"Jane"


def test_empty_profile_content_gives_empty_attribute_list(private_key) -> None:
    receipt = _receipt(private_key, os.urandom(32), other_party_profile_content="")

    result = ReceiptDecryptor(private_key).decrypt(receipt)

    assert len(result.attributes) == 0


def test_malformed_wrapped_key_is_a_key_unwrap_error(private_key) -> None:
    receipt = Receipt(
        sharing_outcome="SUCCESS",
        wrapped_receipt_key="%%% not base64 %%%",
        other_party_profile_content="irrelevant",
    )

    with pytest.raises(KeyUnwrapError):
        ReceiptDecryptor(private_key).decrypt(receipt)


def test_wrapped_key_of_wrong_length_is_a_key_unwrap_error(private_key) -> None:
    receipt = Receipt(
        sharing_outcome="SUCCESS",
        wrapped_receipt_key=base64.b64encode(b"\x00" * 32).decode("ascii"),
    )

    with pytest.raises(KeyUnwrapError):
        ReceiptDecryptor(private_key).unwrap_key(receipt)


def test_ciphertext_not_block_aligned_is_a_receipt_decrypt_error(private_key) -> None:
    aes_key = os.urandom(32)
    envelope = protobuf.EncryptedData(iv=os.urandom(16), cipher_text=b"\x00" * 17)
    receipt = _receipt(
        private_key,
        aes_key,
        other_party_profile_content=base64.b64encode(envelope.SerializeToString()).decode("ascii"),
    )

    with pytest.raises(ReceiptDecryptError):
        ReceiptDecryptor(private_key).decrypt(receipt)


def test_content_that_is_not_base64_is_a_receipt_decrypt_error(private_key) -> None:
    receipt = _receipt(private_key, os.urandom(32), other_party_profile_content="not base64!")

    with pytest.raises(ReceiptDecryptError):
        ReceiptDecryptor(private_key).decrypt(receipt)


def test_plaintext_that_is_not_an_attribute_list_is_a_parse_error(private_key) -> None:
    aes_key = os.urandom(32)
    receipt = _receipt(
        private_key,
        aes_key,
        other_party_profile_content=encrypt_content(aes_key, b"\xff\xff\xff"),
    )

    with pytest.raises(AttributeListParseError):
        ReceiptDecryptor(private_key).decrypt(receipt)


def test_application_profile_and_extra_data_share_the_receipt_key(private_key) -> None:
    aes_key = os.urandom(32)
    app = attribute_list(attribute("application_name", b"Demo", ContentType.STRING))
    receipt = _receipt(
        private_key,
        aes_key,
        profile_content=encrypt_content(aes_key, app.SerializeToString()),
        extra_data_content=encrypt_content(aes_key, b"extra"),
    )
    decryptor = ReceiptDecryptor(private_key)
    receipt_key = decryptor.unwrap_key(receipt)

    assert receipt_key == aes_key
    assert decryptor.decrypt_application_profile(receipt, receipt_key).attributes[0].name == "application_name"
    assert decryptor.decrypt_extra_data(receipt, receipt_key) == b"extra"


def test_parse_receipt_response(private_key) -> None:
    receipt = parse_receipt_response(receipt_json(private_key))

    assert receipt.sharing_outcome == "SUCCESS"
    assert receipt.remember_me_id == "remember-me"
    assert receipt.parent_remember_me_id == "parent-remember-me"
    assert receipt.receipt_id == "receipt-123"
    assert receipt.error_details is None


def test_parse_receipt_response_reads_error_details_in_both_places() -> None:
    inside = json.dumps(
        {"receipt": {"sharing_outcome": "FAILURE", "error_details": {"error_code": "X", "description": "d"}}},
    )
    beside = json.dumps(
        {"receipt": {"sharing_outcome": "FAILURE"}, "error_details": {"error_code": "Y", "description": "e"}},
    )

    assert parse_receipt_response(inside).error_details.error_code == "X"
    assert parse_receipt_response(beside).error_details.error_code == "Y"


@pytest.mark.parametrize("content", [b"not json", b"[]", b'{"other": 1}', b'{"receipt": "x"}'])
def test_parse_receipt_response_rejects_bad_envelopes(content) -> None:
    with pytest.raises(ResponseParseError):
        parse_receipt_response(content)
