from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Age arrives from HTML forms as a string as often as a number.
AgeInput = Optional[Union[int, str]]

REQUIRED_FIELDS = ("username", "fullname", "email")

# The age column is a 32-bit INTEGER on every supported backend.
AGE_MIN = -(2**31)
AGE_MAX = 2**31 - 1


class InvalidAgeError(ValueError):
    """Raised when an age value cannot be read as a whole number."""


def _filled(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def _parse_age_text(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        number = float(text)
    if not number.is_integer():
        raise ValueError(f"{text!r} is not a whole number")
    return int(number)


def coerce_age(value: AgeInput) -> Optional[int]:
    """Turn a submitted age into an integer, or None for falsy/blank input.

    "30" and "30.0" both read as 30. Fractions and values outside the
    column range raise InvalidAgeError.
    """
    if isinstance(value, str):
        value = value.strip()
    if not value:
        return None
    try:
        age = _parse_age_text(value) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidAgeError("Age must be a number") from exc
    if not AGE_MIN <= age <= AGE_MAX:
        raise InvalidAgeError("Age must be a number")
    return age


# ----- Request Schemas -----


class UserCreate(BaseModel):
    """Body of a create request.

    Every field is optional at the schema level so that missing required
    fields surface as a 400 from the endpoint rather than a schema error.
    """

    username: Optional[str] = None
    fullname: Optional[str] = None
    email: Optional[str] = None
    age: AgeInput = None
    profilepic: Optional[str] = None

    def missing_required(self) -> bool:
        return not all(_filled(getattr(self, name)) for name in REQUIRED_FIELDS)

    def to_record(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "fullname": self.fullname,
            "email": self.email,
            "age": coerce_age(self.age),
            # A blank picture URL is stored as "no picture".
            "profilepic": self.profilepic or None,
        }


class UserPatch(BaseModel):
    """Partial update of a user.

    Presence is tracked through ``model_fields_set``: a field the client did
    not send is never written. Blank strings mean "leave unchanged", except
    for ``age`` where any falsy value clears it.
    """

    username: Optional[str] = None
    fullname: Optional[str] = None
    email: Optional[str] = None
    age: AgeInput = None
    profilepic: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        sent = self.model_fields_set
        data: Dict[str, Any] = {}

        for name in REQUIRED_FIELDS:
            value = getattr(self, name)
            if name in sent and _filled(value):
                data[name] = value

        if "age" in sent:
            data["age"] = coerce_age(self.age)

        if "profilepic" in sent and (self.profilepic is None or _filled(self.profilepic)):
            data["profilepic"] = self.profilepic

        return data


# ----- Response Schemas -----


class UserOut(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    username: str
    fullname: str
    email: str
    age: Optional[int] = None
    profilepic: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Message(BaseModel):
    message: str = Field(..., description="Confirmation message.")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Error description.")
