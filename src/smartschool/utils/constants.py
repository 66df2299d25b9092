"""Application-wide constants."""

APP_NAME = "IvorSmartSchools"
APP_VERSION = "3.2.0"
APP_ORGANIZATION = "IvorSmartSchools"

# Every local store key is namespaced with this prefix
STORAGE_PREFIX = "sms_"
AUTH_USER_KEY = "sms_auth_user"

# ── Branding ────────────────────────────────────────────────────
# field name -> (local key, default)
BRANDING_FIELDS = {
    "schoolName": ("sms_schoolName", "IvorSmartSchools Academy"),
    "schoolMotto": ("sms_schoolMotto", "Smart Learning for a Smart Future"),
    "schoolContact": ("sms_schoolContact", "+260 977 134049"),
    "schoolLogo": ("sms_schoolLogo", ""),
}

SETTINGS_TABLE = "settings"

# ── Grading ─────────────────────────────────────────────────────
DEFAULT_GRADE_SCALES = [
    {"id": "G1", "label": "1", "minMark": 90, "maxMark": 100, "description": "Distinction"},
    {"id": "G2", "label": "2", "minMark": 80, "maxMark": 89, "description": "Excellent"},
    {"id": "G3", "label": "3", "minMark": 70, "maxMark": 79, "description": "Merit"},
    {"id": "G4", "label": "4", "minMark": 60, "maxMark": 69, "description": "Credit"},
    {"id": "G5", "label": "5", "minMark": 50, "maxMark": 59, "description": "Good Pass"},
    {"id": "G6", "label": "6", "minMark": 45, "maxMark": 49, "description": "Pass"},
    {"id": "G7", "label": "7", "minMark": 40, "maxMark": 44, "description": "Weak Pass"},
    {"id": "G8", "label": "8", "minMark": 35, "maxMark": 39, "description": "Very Weak"},
    {"id": "G9", "label": "9", "minMark": 0, "maxMark": 34, "description": "Fail"},
    {"id": "GX", "label": "X", "minMark": -1, "maxMark": -1, "description": "Absent"},
]

# ── Sync ────────────────────────────────────────────────────────
# Row id that never exists; "delete where id != sentinel" wipes a table
CLEAR_ALL_SENTINEL = "_CLEAR_ALL_FORCE_"

STORAGE_FULL_MESSAGE = "Storage Full: local storage full, cloud sync only."
SETTINGS_SAVE_FAILED_MESSAGE = "Failed to save settings to cloud."
FETCH_FAILED_MESSAGE = "Failed to reach cloud database."

# ── Roles & modules ─────────────────────────────────────────────
ROLES = ["ADMIN", "TEACHER", "STUDENT", "ATTENDANCE_OFFICER"]

MODULES = [
    ("STUDENTS", "ADD/CHECK STUDENTS"),
    ("TEACHERS", "ADD/CHECK TEACHERS"),
    ("EXAMS", "EXAM MANAGEMENT"),
    ("FEES", "FEES & FINANCE"),
    ("RESOURCES", "STUDYING RESOURCES"),
    ("ANNOUNCEMENTS", "OFFICIAL ANNOUNCEMENTS"),
    ("ENROLLMENT", "CURRENT ENROLMENT"),
    ("PAYMENT", "ACADEMICS AND CLASSES"),
    ("ADMISSION_RECEIPT", "ISSUE ADMISSION RECEIPT"),
    ("ATTENDANCE", "ATTENDANCE"),
    ("EMIS", "ONLINE EXAM"),
    ("TRANSFER_FORM", "ISSUE TRANSFER FORM"),
    ("REGISTER", "REGISTER"),
    ("EXAM_ANALYSIS", "EXAM ANALYSIS"),
    ("CLASS", "CLASS"),
    ("PERIODMETER", "PERIODMETER"),
    ("SETTINGS", "SYSTEM SETTINGS"),
]

# None = every module
ROLE_MODULES = {
    "ADMIN": None,
    "TEACHER": {
        "EXAMS", "RESOURCES", "ATTENDANCE", "REGISTER", "CLASS",
        "ANNOUNCEMENTS", "PERIODMETER",
    },
    "STUDENT": {
        "EXAMS", "FEES", "RESOURCES", "ATTENDANCE", "ANNOUNCEMENTS",
        "PERIODMETER",
    },
    "ATTENDANCE_OFFICER": {"ATTENDANCE", "PERIODMETER", "ANNOUNCEMENTS"},
}
