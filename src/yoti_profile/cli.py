"""Yoti profile CLI."""

from __future__ import annotations

import argparse
import base64
import json
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from yoti_profile.attributes import Attribute, Image, MultiValueItem, OpaqueValue
from yoti_profile.client import YotiClient
from yoti_profile.crypto import decrypt_token, load_private_key
from yoti_profile.errors import ConfigurationError, YotiError
from yoti_profile.profile import ActivityDetails
from yoti_profile.signed_request import AuthMode
from yoti_profile.types import DetailedFailure


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="yoti-profile", description="Yoti profile CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    token_parser = subparsers.add_parser("token", help="Decrypt a connect token")
    token_parser.add_argument("token")
    token_parser.add_argument("--key-file", required=True)
    token_parser.add_argument("--json", action="store_true")

    profile_parser = subparsers.add_parser("profile", help="Fetch the profile shared for a token")
    profile_parser.add_argument("token")
    profile_parser.add_argument("--key-file", required=True)
    profile_parser.add_argument("--sdk-id", default=None)
    profile_parser.add_argument("--api-url", default=None)
    profile_parser.add_argument("--legacy", action="store_true")
    profile_parser.add_argument("--json", action="store_true")

    return parser


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Image):
        return {"mime_type": value.mime_type, "data": base64.b64encode(value.data).decode("ascii")}
    if isinstance(value, OpaqueValue):
        return {"content_type": value.content_type, "data": base64.b64encode(value.data).decode("ascii")}
    if isinstance(value, tuple):
        return [_jsonable(item) for item in value]
    if isinstance(value, MultiValueItem):
        return _jsonable(value.value)
    return value


def _attribute_json(attribute: Attribute) -> dict[str, Any]:
    return {
        "name": attribute.name,
        "content_type": getattr(attribute.content_type, "name", attribute.content_type),
        "value": _jsonable(attribute.value),
        "sources": [a.value for a in attribute.sources],
        "verifiers": [a.value for a in attribute.verifiers],
    }


def _activity_json(activity: ActivityDetails) -> dict[str, Any]:
    return {
        "command": "profile",
        "outcome": "SUCCESS",
        "remember_me_id": activity.remember_me_id,
        "parent_remember_me_id": activity.parent_remember_me_id,
        "receipt_id": activity.receipt_id,
        "timestamp": _jsonable(activity.timestamp),
        "attributes": [_attribute_json(a) for a in activity.user_profile],
        "application": [_attribute_json(a) for a in activity.application_profile],
        "errors": [str(e) for e in activity.error] if activity.error else [],
    }


def _read_key(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as error:
        raise ConfigurationError(f"Unable to read key file '{path}': {error}") from error


def _run_profile(args: argparse.Namespace) -> int:
    sdk_id = args.sdk_id or os.environ.get("YOTI_CLIENT_SDK_ID")
    if not sdk_id:
        print("An SDK ID is required (--sdk-id or YOTI_CLIENT_SDK_ID)", file=sys.stderr)
        return 2

    client = YotiClient(
        sdk_id,
        _read_key(args.key_file),
        api_url=args.api_url,
        auth_mode=AuthMode.LEGACY if args.legacy else AuthMode.CURRENT,
    )
    result = client.get_activity_details(args.token)

    if not isinstance(result, ActivityDetails):
        payload = {"command": "profile", "outcome": type(result).__name__}
        if isinstance(result, DetailedFailure):
            payload["error_code"] = result.code
            payload["description"] = result.description
        if args.json:
            print(json.dumps(payload, sort_keys=True))
        else:
            print(f"Sharing failed: {payload['outcome']}")
            if isinstance(result, DetailedFailure):
                print(f"{result.code}: {result.description or ''}")
        return 1

    payload = _activity_json(result)
    if args.json:
        print(json.dumps(payload, sort_keys=True))
        return 0
    print(f"rememberMeId: {result.remember_me_id}")
    print(f"receiptId: {result.receipt_id}")
    for attribute in payload["attributes"]:
        print(f"{attribute['name']}: {attribute['value']}")
    for error in payload["errors"]:
        print(f"warning: {error}", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "token":
            key = load_private_key(_read_key(args.key_file))
            token = decrypt_token(args.token, key)
            if args.json:
                print(json.dumps({"command": "token", "token": token}, sort_keys=True))
            else:
                print(token)
            return 0

        if args.command == "profile":
            return _run_profile(args)
    except YotiError as error:
        print(f"{type(error).__name__}: {error}", file=sys.stderr)
        return 2

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
