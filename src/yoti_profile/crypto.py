"""RSA and AES primitives: request signing, token recovery and receipt key unwrapping."""

from __future__ import annotations

import base64
import binascii

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, padding, serialization
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from yoti_profile.errors import (
    ConfigurationError,
    InvalidTokenError,
    SigningError,
    TokenDecryptError,
)

AES_BLOCK_SIZE_BITS = 128


def load_private_key(pem: bytes | str) -> rsa.RSAPrivateKey:
    if isinstance(pem, str):
        pem = pem.encode("utf-8")
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as error:
        raise ConfigurationError(f"Invalid key: {error}") from error
    if not isinstance(key, rsa.RSAPrivateKey):
        raise ConfigurationError("Invalid key: an RSA private key is required")
    return key


def _require_rsa(key: object) -> rsa.RSAPrivateKey:
    if not isinstance(key, rsa.RSAPrivateKey):
        raise SigningError("An RSA private key is required for signing")
    return key


def b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def b64decode(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)


def urlsafe_b64decode(value: str) -> bytes:
    standard = value.strip().replace("-", "+").replace("_", "/")
    pad = len(standard) % 4
    padded = standard if pad == 0 else standard + ("=" * (4 - pad))
    return base64.b64decode(padded.encode("ascii"), validate=True)


def sign_digest(message: bytes, key: rsa.RSAPrivateKey) -> bytes:
    """Sign ``message`` with RSASSA-PKCS1-v1_5 over SHA-256.

    PKCS#1 v1.5 signatures are deterministic, so the same key and message
    always produce the same bytes.
    """
    private_key = _require_rsa(key)
    try:
        return private_key.sign(message, asym_padding.PKCS1v15(), hashes.SHA256())
    except (ValueError, TypeError) as error:
        raise SigningError(f"Unable to sign digest: {error}") from error


def verify_digest(message: bytes, signature: bytes, public_key: rsa.RSAPublicKey) -> bool:
    try:
        public_key.verify(signature, message, asym_padding.PKCS1v15(), hashes.SHA256())
    except (InvalidSignature, ValueError, TypeError):
        return False
    return True


def public_key_der(key: rsa.RSAPrivateKey) -> bytes:
    private_key = _require_rsa(key)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def auth_key_header(key: rsa.RSAPrivateKey) -> str:
    return b64encode(public_key_der(key))


def decrypt_rsa(ciphertext: bytes, key: rsa.RSAPrivateKey) -> bytes:
    return key.decrypt(ciphertext, asym_padding.PKCS1v15())


def decrypt_token(encrypted_token: str, key: rsa.RSAPrivateKey) -> str:
    if not encrypted_token:
        raise InvalidTokenError("Invalid token: the token is empty")

    # tokens arrive through a redirect URL, hence the URL-safe alphabet
    try:
        cipher_bytes = urlsafe_b64decode(encrypted_token)
    except (binascii.Error, ValueError) as error:
        raise TokenDecryptError(f"Unable to decode token: {error}") from error

    try:
        plaintext = decrypt_rsa(cipher_bytes, key)
    except (ValueError, TypeError) as error:
        raise TokenDecryptError(f"Unable to decrypt token: {error}") from error

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as error:
        raise TokenDecryptError("Decrypted token is not valid UTF-8") from error


def decipher_aes_cbc(key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    """AES-CBC decrypt and strip PKCS#7 padding; raises ``ValueError`` on bad input."""
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(AES_BLOCK_SIZE_BITS).unpadder()
    return unpadder.update(padded) + unpadder.finalize()
