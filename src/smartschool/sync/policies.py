"""Tracked collections and their reconciliation policies.

Every collection the state store owns is declared here once: where it
lives locally, which remote table mirrors it, how a fetched result is
merged, and whether deletes reach the remote store. Adding a collection
means adding a row; there is no implicit default policy.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from smartschool.utils.constants import DEFAULT_GRADE_SCALES


class MergeStrategy(Enum):
    OVERWRITE = "overwrite"                       # any result replaces local
    OVERWRITE_NON_EMPTY = "overwrite_non_empty"   # empty result keeps local
    LOCAL_ONLY = "local_only"                     # never fetched or pushed


@dataclass(frozen=True)
class CollectionPolicy:
    name: str
    local_key: str
    remote_table: str | None = None
    strategy: MergeStrategy = MergeStrategy.OVERWRITE
    order_by: str | None = None
    order_descending: bool = False
    remote_delete: bool = False
    default_factory: Callable[[], list] = field(default=list, compare=False)

    @property
    def is_synced(self) -> bool:
        return (
            self.remote_table is not None
            and self.strategy is not MergeStrategy.LOCAL_ONLY
        )

    def default(self) -> list:
        return self.default_factory()

    def should_apply(self, fetched: list | None) -> bool:
        """Whether a fetched result replaces the in-memory collection."""
        if fetched is None or not self.is_synced:
            return False
        if self.strategy is MergeStrategy.OVERWRITE_NON_EMPTY:
            return len(fetched) > 0
        return True


def default_grade_scales() -> list[dict]:
    return copy.deepcopy(DEFAULT_GRADE_SCALES)


def _local(name: str, key: str) -> CollectionPolicy:
    return CollectionPolicy(name, key, strategy=MergeStrategy.LOCAL_ONLY)


COLLECTIONS: tuple[CollectionPolicy, ...] = (
    CollectionPolicy("students", "sms_students", "students",
                     remote_delete=True),
    CollectionPolicy("teachers", "sms_teachers", "teachers"),
    CollectionPolicy("subjects", "sms_subjects", "subjects"),
    _local("departments", "sms_departments"),
    CollectionPolicy("classes", "sms_classes", "classes"),
    _local("allocations", "sms_allocations"),
    CollectionPolicy("fee_structures", "sms_fee_structures", "fee_structures"),
    CollectionPolicy("fee_payments", "sms_fee_payments", "fee_payments"),
    CollectionPolicy("announcements", "sms_announcements", "announcements",
                     order_by="createdAt", order_descending=True),
    CollectionPolicy("online_exams", "sms_onlineExams", "online_exams"),
    CollectionPolicy("submissions", "sms_submissions", "exam_submissions"),
    _local("resources", "sms_resources"),
    CollectionPolicy("attendance", "sms_attendance", "attendance"),
    CollectionPolicy("marks", "sms_marks", "student_marks"),
    CollectionPolicy("exam_sessions", "sms_sessions", "exam_sessions"),
    CollectionPolicy("grade_scales", "sms_gradeScales", "grade_scales",
                     strategy=MergeStrategy.OVERWRITE_NON_EMPTY,
                     default_factory=default_grade_scales),
    CollectionPolicy("period_allocations", "sms_period_allocations",
                     "period_allocations"),
    CollectionPolicy("period_sessions", "sms_period_sessions",
                     "period_sessions"),
    CollectionPolicy("period_attendance", "sms_period_attendance",
                     "period_attendance"),
)

COLLECTIONS_BY_NAME: dict[str, CollectionPolicy] = {
    policy.name: policy for policy in COLLECTIONS
}

SYNCED_COLLECTIONS: tuple[CollectionPolicy, ...] = tuple(
    policy for policy in COLLECTIONS if policy.is_synced
)
