"""Yoti profile SDK: signed profile requests and encrypted receipt decoding."""

from yoti_profile.anchors import Anchor, AnchorType, parse_anchors
from yoti_profile.attributes import (
    Attribute,
    AttributeFactory,
    ContentType,
    Image,
    MultiValueItem,
    OpaqueValue,
)
from yoti_profile.client import DEFAULT_API_URL, YotiClient
from yoti_profile.crypto import (
    auth_key_header,
    decrypt_token,
    load_private_key,
    public_key_der,
    sign_digest,
    verify_digest,
)
from yoti_profile.errors import (
    AttributeBuildError,
    AttributeListParseError,
    ConfigurationError,
    DateAttributeError,
    ExtraDataParseError,
    InvalidTokenError,
    KeyUnwrapError,
    MultiError,
    ReceiptDecryptError,
    RequestError,
    ResponseParseError,
    SigningError,
    TokenDecryptError,
    YotiError,
)
from yoti_profile.extra_data import ExtraData, IssuanceDetails
from yoti_profile.outcome import OutcomeMapper
from yoti_profile.profile import (
    ActivityDetails,
    AgeVerification,
    ApplicationProfile,
    Profile,
    UserProfile,
)
from yoti_profile.receipt import ReceiptDecryptor, parse_receipt_response
from yoti_profile.signed_request import AuthMode, sign_request, verify_signed_request
from yoti_profile.types import (
    DetailedFailure,
    ErrorDetails,
    GenericFailure,
    HttpResponse,
    ProfileNotFound,
    Receipt,
    SignedRequest,
    Success,
)

__all__ = [
    "DEFAULT_API_URL",
    "ActivityDetails",
    "AgeVerification",
    "Anchor",
    "AnchorType",
    "ApplicationProfile",
    "Attribute",
    "AttributeBuildError",
    "AttributeFactory",
    "AttributeListParseError",
    "AuthMode",
    "ConfigurationError",
    "ContentType",
    "DateAttributeError",
    "DetailedFailure",
    "ErrorDetails",
    "ExtraData",
    "ExtraDataParseError",
    "GenericFailure",
    "HttpResponse",
    "Image",
    "InvalidTokenError",
    "IssuanceDetails",
    "KeyUnwrapError",
    "MultiError",
    "MultiValueItem",
    "OpaqueValue",
    "OutcomeMapper",
    "Profile",
    "ProfileNotFound",
    "Receipt",
    "ReceiptDecryptError",
    "ReceiptDecryptor",
    "RequestError",
    "ResponseParseError",
    "SignedRequest",
    "SigningError",
    "Success",
    "TokenDecryptError",
    "UserProfile",
    "YotiClient",
    "YotiError",
    "auth_key_header",
    "decrypt_token",
    "load_private_key",
    "parse_anchors",
    "parse_receipt_response",
    "public_key_der",
    "sign_digest",
    "sign_request",
    "verify_digest",
    "verify_signed_request",
]

__version__ = "0.1.0"
