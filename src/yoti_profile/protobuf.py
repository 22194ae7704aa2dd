"""Protobuf message classes for the receipt payloads.

The schemas are declared here as descriptors instead of generated ``_pb2``
modules; the wire format (field numbers and types) matches the platform's
``attrpubapi_v1``, ``compubapi_v1`` and ``sharepubapi_v1`` definitions.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_PACKAGE = "yoti_profile.wire"

_F = descriptor_pb2.FieldDescriptorProto

CONTENT_TYPES = (
    ("UNDEFINED", 0),
    ("STRING", 1),
    ("JPEG", 2),
    ("DATE", 3),
    ("PNG", 4),
    ("JSON", 5),
    ("MULTI_VALUE", 6),
    ("INT", 7),
)

DATA_ENTRY_TYPES = (
    ("UNKNOWN", 0),
    ("INVALID", 1),
    ("THIRD_PARTY_ATTRIBUTE", 6),
)


def _add_field(message, name: str, number: int, field_type: int, *, repeated: bool = False, type_name: str | None = None) -> None:
    field = message.field.add()
    field.name = name
    field.number = number
    field.type = field_type
    field.label = _F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL
    if type_name is not None:
        field.type_name = f".{_PACKAGE}.{type_name}"


def _add_enum(file_proto, name: str, values) -> None:
    enum_proto = file_proto.enum_type.add()
    enum_proto.name = name
    for value_name, number in values:
        value = enum_proto.value.add()
        value.name = value_name
        value.number = number


def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = "yoti_profile/wire.proto"
    file_proto.package = _PACKAGE
    file_proto.syntax = "proto3"

    _add_enum(file_proto, "ContentType", CONTENT_TYPES)
    _add_enum(file_proto, "DataEntryType", DATA_ENTRY_TYPES)

    encrypted_data = file_proto.message_type.add()
    encrypted_data.name = "EncryptedData"
    _add_field(encrypted_data, "iv", 1, _F.TYPE_BYTES)
    _add_field(encrypted_data, "cipher_text", 2, _F.TYPE_BYTES)

    signed_timestamp = file_proto.message_type.add()
    signed_timestamp.name = "SignedTimestamp"
    _add_field(signed_timestamp, "version", 1, _F.TYPE_INT32)
    _add_field(signed_timestamp, "timestamp", 2, _F.TYPE_UINT64)
    _add_field(signed_timestamp, "message_digest", 3, _F.TYPE_BYTES)
    _add_field(signed_timestamp, "chain_digest", 4, _F.TYPE_BYTES)
    _add_field(signed_timestamp, "chain_digest_skip1", 5, _F.TYPE_BYTES)
    _add_field(signed_timestamp, "chain_digest_skip2", 6, _F.TYPE_BYTES)

    anchor = file_proto.message_type.add()
    anchor.name = "Anchor"
    _add_field(anchor, "artifact_link", 1, _F.TYPE_BYTES)
    _add_field(anchor, "origin_server_certs", 2, _F.TYPE_BYTES, repeated=True)
    _add_field(anchor, "artifact_signature", 3, _F.TYPE_BYTES)
    _add_field(anchor, "sub_type", 4, _F.TYPE_STRING)
    _add_field(anchor, "signature", 5, _F.TYPE_BYTES)
    _add_field(anchor, "signed_time_stamp", 6, _F.TYPE_BYTES)

    attribute = file_proto.message_type.add()
    attribute.name = "Attribute"
    _add_field(attribute, "name", 1, _F.TYPE_STRING)
    _add_field(attribute, "value", 2, _F.TYPE_BYTES)
    _add_field(attribute, "content_type", 3, _F.TYPE_ENUM, type_name="ContentType")
    _add_field(attribute, "anchors", 4, _F.TYPE_MESSAGE, repeated=True, type_name="Anchor")

    attribute_list = file_proto.message_type.add()
    attribute_list.name = "AttributeList"
    _add_field(attribute_list, "attributes", 1, _F.TYPE_MESSAGE, repeated=True, type_name="Attribute")

    multi_value = file_proto.message_type.add()
    multi_value.name = "MultiValue"
    multi_value_item = multi_value.nested_type.add()
    multi_value_item.name = "Value"
    _add_field(multi_value_item, "content_type", 1, _F.TYPE_ENUM, type_name="ContentType")
    _add_field(multi_value_item, "data", 2, _F.TYPE_BYTES)
    _add_field(multi_value, "values", 1, _F.TYPE_MESSAGE, repeated=True, type_name="MultiValue.Value")

    definition = file_proto.message_type.add()
    definition.name = "Definition"
    _add_field(definition, "name", 1, _F.TYPE_STRING)

    issuing_attributes = file_proto.message_type.add()
    issuing_attributes.name = "IssuingAttributes"
    _add_field(issuing_attributes, "expiry_date", 1, _F.TYPE_STRING)
    _add_field(issuing_attributes, "definitions", 2, _F.TYPE_MESSAGE, repeated=True, type_name="Definition")

    third_party_attribute = file_proto.message_type.add()
    third_party_attribute.name = "ThirdPartyAttribute"
    _add_field(third_party_attribute, "issuance_token", 1, _F.TYPE_BYTES)
    _add_field(
        third_party_attribute,
        "issuing_attributes",
        2,
        _F.TYPE_MESSAGE,
        type_name="IssuingAttributes",
    )

    data_entry = file_proto.message_type.add()
    data_entry.name = "DataEntry"
    _add_field(data_entry, "type", 1, _F.TYPE_ENUM, type_name="DataEntryType")
    _add_field(data_entry, "value", 2, _F.TYPE_BYTES)

    extra_data = file_proto.message_type.add()
    extra_data.name = "ExtraData"
    _add_field(extra_data, "list", 1, _F.TYPE_MESSAGE, repeated=True, type_name="DataEntry")

    return file_proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_file_descriptor().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{_PACKAGE}.{name}"))


EncryptedData = _message_class("EncryptedData")
SignedTimestamp = _message_class("SignedTimestamp")
Anchor = _message_class("Anchor")
Attribute = _message_class("Attribute")
AttributeList = _message_class("AttributeList")
MultiValue = _message_class("MultiValue")
MultiValueValue = _message_class("MultiValue.Value")
Definition = _message_class("Definition")
IssuingAttributes = _message_class("IssuingAttributes")
ThirdPartyAttribute = _message_class("ThirdPartyAttribute")
DataEntry = _message_class("DataEntry")
ExtraData = _message_class("ExtraData")
