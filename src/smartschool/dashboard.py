"""Dashboard summary built from the synchronized collections."""

from smartschool.database.models import FeePayment
from smartschool.sync.state_store import StateStore


def total_revenue(payments: list[dict]) -> float:
    return sum(
        float(FeePayment.from_dict(p).amount or 0) for p in payments
    )


def build_summary(store: StateStore, announcement_limit: int = 4) -> dict:
    """Headline figures plus the newest announcements.

    Announcements keep the order the remote query returned (newest first).
    """
    return {
        "totalStudents": len(store.get("students")),
        "staffCount": len(store.get("teachers")),
        "revenue": total_revenue(store.get("fee_payments")),
        "liveAssessments": len(store.get("online_exams")),
        "recentAnnouncements": store.get("announcements")[:announcement_limit],
        "schoolName": store.branding()["schoolName"],
    }
