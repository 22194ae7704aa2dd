from __future__ import annotations

import base64
import json
import os
from datetime import datetime, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, padding, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.x509.oid import NameOID

from yoti_profile import protobuf
from yoti_profile.anchors import SOURCE_OID, VERIFIER_OID
from yoti_profile.types import HttpResponse

RECEIPT_TIMESTAMP = "2016-07-19T08:55:38.123456789Z"


def rsa_encrypt(public_key, data: bytes) -> bytes:
    return public_key.encrypt(data, asym_padding.PKCS1v15())


def encrypted_token(public_key, token: str) -> str:
    return base64.urlsafe_b64encode(rsa_encrypt(public_key, token.encode("utf-8"))).decode("ascii")


def encrypt_content(aes_key: bytes, plaintext: bytes) -> str:
    iv = os.urandom(16)
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(aes_key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    envelope = protobuf.EncryptedData(iv=iv, cipher_text=ciphertext)
    return base64.b64encode(envelope.SerializeToString()).decode("ascii")


def attribute(name: str, value: bytes, content_type: int, anchors=()):
    return protobuf.Attribute(name=name, value=value, content_type=int(content_type), anchors=list(anchors))


def attribute_list(*attributes):
    return protobuf.AttributeList(attributes=list(attributes))


def der_utf8_sequence(value: str) -> bytes:
    encoded = value.encode("utf-8")
    inner = b"\x0c" + bytes([len(encoded)]) + encoded
    return b"\x30" + bytes([len(inner)]) + inner


def anchor_certificate(oid, value: str) -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, f"anchor-{value.lower()}")])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(datetime(2020, 1, 1, tzinfo=timezone.utc))
        .not_valid_after(datetime(2040, 1, 1, tzinfo=timezone.utc))
        .add_extension(x509.UnrecognizedExtension(oid, der_utf8_sequence(value)), critical=False)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


def anchor(oid=SOURCE_OID, value: str = "PASSPORT", *, sub_type: str = "", timestamp_us: int = 1_500_000_000_000_000, certs=None):
    signed = protobuf.SignedTimestamp(version=1, timestamp=timestamp_us).SerializeToString()
    return protobuf.Anchor(
        origin_server_certs=certs if certs is not None else [anchor_certificate(oid, value)],
        sub_type=sub_type,
        signed_time_stamp=signed,
    )


def source_anchor(value: str = "PASSPORT", **kwargs):
    return anchor(SOURCE_OID, value, **kwargs)


def verifier_anchor(value: str = "YOTI_ADMIN", **kwargs):
    return anchor(VERIFIER_OID, value, **kwargs)


def malformed_anchor():
    # truncated varint: the signed timestamp cannot be decoded
    return protobuf.Anchor(signed_time_stamp=b"\x08\xff\xff")


def receipt_json(
    private_key,
    *,
    user_attributes=None,
    application_attributes=None,
    extra_data: bytes = b"",
    sharing_outcome: str = "SUCCESS",
    timestamp: str = RECEIPT_TIMESTAMP,
    error_details: dict | None = None,
    aes_key: bytes | None = None,
) -> bytes:
    aes_key = aes_key or os.urandom(32)
    receipt = {
        "receipt_id": "receipt-123",
        "sharing_outcome": sharing_outcome,
        "remember_me_id": "remember-me",
        "parent_remember_me_id": "parent-remember-me",
        "timestamp": timestamp,
        "wrapped_receipt_key": base64.b64encode(rsa_encrypt(private_key.public_key(), aes_key)).decode("ascii"),
        "other_party_profile_content": (
            encrypt_content(aes_key, user_attributes.SerializeToString()) if user_attributes is not None else ""
        ),
        "profile_content": (
            encrypt_content(aes_key, application_attributes.SerializeToString())
            if application_attributes is not None
            else ""
        ),
        "extra_data_content": encrypt_content(aes_key, extra_data) if extra_data else "",
    }
    if error_details is not None:
        receipt["error_details"] = error_details
    return json.dumps({"receipt": receipt}).encode("utf-8")


class FakeFetcher:
    def __init__(self, response: HttpResponse | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    def __call__(self, url: str, method: str, headers: dict[str, str], body: bytes | None) -> HttpResponse:
        self.calls.append({"url": url, "method": method, "headers": headers, "body": body})
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response
