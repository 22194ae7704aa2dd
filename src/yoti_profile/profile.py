"""User and application profiles assembled from typed attributes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from yoti_profile.attributes import Attribute, Image
from yoti_profile.errors import MultiError
from yoti_profile.extra_data import ExtraData

AGE_OVER = "age_over"
AGE_UNDER = "age_under"


@dataclass(frozen=True)
class AgeVerification:
    check_type: str
    age: int
    result: bool
    attribute: Attribute


def _age_verification(attribute: Attribute) -> AgeVerification | None:
    check_type, sep, age = attribute.name.partition(":")
    if not sep or check_type not in (AGE_OVER, AGE_UNDER) or not age.isdigit():
        return None
    if not isinstance(attribute.value, str) or attribute.value not in ("true", "false"):
        return None
    return AgeVerification(
        check_type=check_type,
        age=int(age),
        result=attribute.value == "true",
        attribute=attribute,
    )


class Profile:
    """Attributes of one party, in the order the platform sent them.

    Names need not be unique: records sharing a base name (the part before
    any ``:``) are kept as an ordered group, see :meth:`get_attributes`.
    """

    def __init__(self, attributes: Iterable[Attribute] = ()):
        self._attributes = tuple(attributes)
        groups: dict[str, list[Attribute]] = {}
        for attribute in self._attributes:
            groups.setdefault(attribute.base_name, []).append(attribute)
        self._groups = {name: tuple(items) for name, items in groups.items()}

    def __len__(self) -> int:
        return len(self._attributes)

    def __iter__(self):
        return iter(self._attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Profile):
            return NotImplemented
        return type(self) is type(other) and self._attributes == other._attributes

    @property
    def attributes(self) -> tuple[Attribute, ...]:
        return self._attributes

    def get_attribute(self, name: str) -> Attribute | None:
        for attribute in self._attributes:
            if attribute.name == name:
                return attribute
        return None

    def get_attributes(self, base_name: str) -> tuple[Attribute, ...]:
        return self._groups.get(base_name, ())

    def grouped(self) -> dict[str, tuple[Attribute, ...]]:
        return dict(self._groups)

    def _value(self, name: str) -> Any:
        attribute = self.get_attribute(name)
        return attribute.value if attribute is not None else None


class UserProfile(Profile):
    @property
    def given_names(self) -> str | None:
        return self._value("given_names")

    @property
    def family_name(self) -> str | None:
        return self._value("family_name")

    @property
    def full_name(self) -> str | None:
        return self._value("full_name")

    @property
    def date_of_birth(self) -> datetime | None:
        return self._value("date_of_birth")

    @property
    def gender(self) -> str | None:
        return self._value("gender")

    @property
    def nationality(self) -> str | None:
        return self._value("nationality")

    @property
    def phone_number(self) -> str | None:
        return self._value("phone_number")

    @property
    def email_address(self) -> str | None:
        return self._value("email_address")

    @property
    def postal_address(self) -> str | None:
        return self._value("postal_address")

    @property
    def structured_postal_address(self) -> Any:
        return self._value("structured_postal_address")

    @property
    def document_details(self) -> str | None:
        return self._value("document_details")

    @property
    def selfie(self) -> Image | None:
        value = self._value("selfie")
        return value if isinstance(value, Image) else None

    @property
    def document_images(self) -> tuple[Attribute, ...]:
        return self.get_attributes("document_images")

    def age_verifications(self) -> list[AgeVerification]:
        checks = []
        for attribute in self._attributes:
            check = _age_verification(attribute)
            if check is not None:
                checks.append(check)
        return checks

    def find_age_over_verification(self, age: int) -> AgeVerification | None:
        return _find_age_check(self, AGE_OVER, age)

    def find_age_under_verification(self, age: int) -> AgeVerification | None:
        return _find_age_check(self, AGE_UNDER, age)


def _find_age_check(profile: UserProfile, check_type: str, age: int) -> AgeVerification | None:
    for check in profile.age_verifications():
        if check.check_type == check_type and check.age == age:
            return check
    return None


class ApplicationProfile(Profile):
    @property
    def application_name(self) -> str | None:
        return self._value("application_name")

    @property
    def application_url(self) -> str | None:
        return self._value("application_url")

    @property
    def application_logo(self) -> Image | None:
        value = self._value("application_logo")
        return value if isinstance(value, Image) else None

    @property
    def application_receipt_bgcolor(self) -> str | None:
        return self._value("application_receipt_bgcolor")


@dataclass(frozen=True)
class ActivityDetails:
    user_profile: UserProfile
    application_profile: ApplicationProfile
    remember_me_id: str
    parent_remember_me_id: str
    receipt_id: str
    timestamp: datetime | None
    extra_data: ExtraData = field(default_factory=ExtraData)
    error: MultiError | None = None
    successful = True
