"""
User records as served by the upstream API.

The upstream returns richer objects (address, phone, company, ...). Only
the four fields below are kept; everything else is dropped on decode.
"""

from dataclasses import dataclass, asdict
from typing import Any

from .errors import UpstreamDecodeError


@dataclass(frozen=True)
class UserRecord:
    """One user, decoded from the upstream response and never mutated."""

    id: int
    name: str
    username: str
    email: str

    @classmethod
    def from_dict(cls, data: Any) -> "UserRecord":
        """
        Decode one element of the upstream array.

        A missing or null field decodes to its zero value (0 or ""); a field
        of the wrong JSON type, or an element that is not an object, raises
        UpstreamDecodeError.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise UpstreamDecodeError(
                f"cannot decode {type(data).__name__} into user record"
            )

        user_id = data.get("id")
        if user_id is None:
            user_id = 0
        # bool is an int subclass but JSON true/false is not a number
        elif isinstance(user_id, bool) or not isinstance(user_id, int):
            raise UpstreamDecodeError(
                f"cannot decode {user_id!r} into field id of type int"
            )

        return cls(
            id=user_id,
            name=_string_field(data, "name"),
            username=_string_field(data, "username"),
            email=_string_field(data, "email"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


def _string_field(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise UpstreamDecodeError(
            f"cannot decode {value!r} into field {key} of type string"
        )
    return value
