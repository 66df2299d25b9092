"""Typed record views over the JSON-shaped rows held in each collection.

The sync layer stores records as plain dicts (whatever the remote table
returns). Consumers that want attribute access convert with
``Model.from_dict(row)`` and back with ``record.to_dict()``; keys are
camelCase on the wire and snake_case on the dataclass.
"""

import re
from dataclasses import dataclass, fields
from typing import Any, Optional

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class Record:
    """Mixin giving dataclasses camelCase dict conversion."""

    @classmethod
    def from_dict(cls, data: dict):
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            name = key if key in known else camel_to_snake(key)
            if name in known:
                kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return {
            snake_to_camel(f.name): getattr(self, f.name)
            for f in fields(self)
        }


@dataclass
class GradeScale(Record):
    id: str = ""
    label: str = ""
    min_mark: int = 0
    max_mark: int = 0
    description: str = ""

    def contains(self, score: float) -> bool:
        return self.min_mark <= score <= self.max_mark


@dataclass
class FeePayment(Record):
    id: str = ""
    student_id: str = ""
    amount: float = 0.0
    date: str = ""
    payment_method: str = "Cash"
    receipt_number: str = ""
    term: str = "Term 1"
    year: str = ""
    recorded_by: str = ""
    note: Optional[str] = None


@dataclass
class SettingRecord(Record):
    key: str = ""
    value: str = ""


@dataclass
class AuthUser(Record):
    id: str = ""
    name: str = ""
    email_or_id: str = ""
    role: str = "STUDENT"  # ADMIN, TEACHER, STUDENT, ATTENDANCE_OFFICER
    meta: Any = None

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"
