"""
Record normalizer: canonical shapes for operation and volunteer records.

Every alias the collaborators use (operationName/name/title, _id/id,
assignedTo/assignedBy, ...) is resolved here, so no other module has to
know about them.
"""
import logging
from collections.abc import Mapping

import pandas as pd

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------

ASSIGNED = "assigned"
NOT_ASSIGNED = "not_assigned"
ASSIGNMENT_STATES = (ASSIGNED, NOT_ASSIGNED)

INDIVIDUAL = "individual"
TEAM = "team"

DAYTIME = "daytime"
NIGHT = "night"
TIME_SLOTS = (DAYTIME, NIGHT)

ROLE_OPTIONS = ["Driver", "Medic", "Logistics", "Cooking", "Translator"]
LANGUAGE_OPTIONS = ["Sinhala", "Tamil", "English"]
OPERATION_STATUSES = ["active", "pending", "completed", "cancelled"]

# Stored scalar and legacy form values -> slot sets
AVAILABLE_TIME_MAP = {
    "both": frozenset(TIME_SLOTS),
    "full": frozenset(TIME_SLOTS),
    "day": frozenset([DAYTIME]),
    "daytime": frozenset([DAYTIME]),
    "morning": frozenset([DAYTIME]),
    "afternoon": frozenset([DAYTIME]),
    "multiple": frozenset([DAYTIME]),
    "evening": frozenset([NIGHT]),
    "night": frozenset([NIGHT]),
}

TRUTHY_ASSIGNED = {"true", "1", "yes", "assigned"}

# Canonical key -> accepted raw keys, in precedence order
OPERATION_ALIASES = {
    "id": ["id", "_id", "operationId", "operation_id"],
    "name": ["operationName", "operation_name", "name", "title"],
    "volunteer_count_needed": [
        "volunteerCountNeeded", "volunteer_count_needed",
        "volunteerCount", "volunteer_count",
    ],
    "status": ["status"],
    "location": ["location"],
    "description": ["description"],
    "start_date": ["startDate", "start_date"],
    "end_date": ["endDate", "end_date"],
}

VOLUNTEER_ALIASES = {
    "id": ["id", "_id"],
    "full_name": ["fullName", "full_name", "name"],
    "phone": ["phone"],
    "email": ["email"],
    "whatsapp": ["whatsapp"],
    "volunteer_type": ["volunteerType", "volunteer_type"],
    "members": ["members"],
    "roles": ["roles", "role"],
    "languages": ["languages", "language"],
    "date": ["date"],
    "available_time": ["availableTime", "available_time", "time"],
    "living_area": ["livingArea", "living_area"],
    "group": ["group"],
    "operation_id": ["operationId", "operation_id"],
    "operation_name": ["operationName", "operation_name"],
    "assigned_date": ["assignedDate", "assigned_date"],
    "assigned_to": ["assignedTo", "assigned_to", "assignedBy", "assigned_by"],
    "assignment_notes": ["assignmentNotes", "assignment_notes"],
    "notes": ["notes"],
}


# ---------------------------------------------------------
# HELPERS
# ---------------------------------------------------------

def _is_missing(value):
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _first(raw, keys):
    """Return the first non-missing value among the aliased keys."""
    for key in keys:
        if key in raw and not _is_missing(raw[key]):
            return raw[key]
    return None


def clean_text(value):
    """Stringify and trim; missing values become ''."""
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def to_int(value, default=0):
    if _is_missing(value) or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def to_string_set(value):
    """Roles/languages arrive as lists, sets, or a (comma separated) string."""
    if _is_missing(value):
        return frozenset()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        items = [value]
    return frozenset(clean_text(v) for v in items if clean_text(v))


def parse_date(value):
    """Parse a date-like value to datetime.date, None when unparseable."""
    ts = parse_datetime(value)
    return ts.date() if ts is not None else None


def parse_datetime(value):
    if _is_missing(value):
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.to_pydatetime()


def coerce_available_time(value):
    """Map any available-time representation onto a subset of TIME_SLOTS."""
    if _is_missing(value):
        return frozenset()
    if isinstance(value, str):
        return AVAILABLE_TIME_MAP.get(value.strip().lower(), frozenset())
    slots = set()
    for item in to_string_set(value):
        slots |= AVAILABLE_TIME_MAP.get(item.lower(), frozenset())
    return frozenset(slots)


def coerce_volunteer_type(value):
    return TEAM if clean_text(value).lower() == TEAM else INDIVIDUAL


def coerce_assignment_status(raw):
    """assignmentStatus wins over the legacy boolean-ish `assigned` flag."""
    status = _first(raw, ["assignmentStatus", "assignment_status"])
    if status is not None:
        return ASSIGNED if clean_text(status).lower() == ASSIGNED else NOT_ASSIGNED

    flag = raw.get("assigned")
    if isinstance(flag, bool):
        return ASSIGNED if flag else NOT_ASSIGNED
    if isinstance(flag, str) and flag.strip().lower() in TRUTHY_ASSIGNED:
        return ASSIGNED
    if isinstance(flag, (int, float)) and not _is_missing(flag) and flag == 1:
        return ASSIGNED
    return NOT_ASSIGNED


def _require_mapping(raw, kind):
    if not isinstance(raw, Mapping):
        raise TypeError(f"{kind} record must be a mapping, got {type(raw).__name__}")


# ---------------------------------------------------------
# NORMALIZERS
# ---------------------------------------------------------

def normalize_operation(raw):
    """Return the canonical operation dict for a raw record."""
    _require_mapping(raw, "Operation")
    a = OPERATION_ALIASES

    needed = to_int(_first(raw, a["volunteer_count_needed"]), 0)
    if needed < 0:
        needed = 0

    return {
        "id": clean_text(_first(raw, a["id"])),
        "name": clean_text(_first(raw, a["name"])),
        "volunteer_count_needed": needed,
        "status": clean_text(_first(raw, a["status"])).lower(),
        "location": clean_text(_first(raw, a["location"])),
        "description": clean_text(_first(raw, a["description"])),
        "start_date": parse_date(_first(raw, a["start_date"])),
        "end_date": parse_date(_first(raw, a["end_date"])),
    }


def normalize_volunteer(raw):
    """Return the canonical volunteer dict for a raw record."""
    _require_mapping(raw, "Volunteer")
    a = VOLUNTEER_ALIASES

    members = to_int(_first(raw, a["members"]), 1)
    if members < 1:
        members = 1

    return {
        "id": clean_text(_first(raw, a["id"])),
        "full_name": clean_text(_first(raw, a["full_name"])),
        "phone": clean_text(_first(raw, a["phone"])),
        "email": clean_text(_first(raw, a["email"])),
        "whatsapp": clean_text(_first(raw, a["whatsapp"])),
        "volunteer_type": coerce_volunteer_type(_first(raw, a["volunteer_type"])),
        "members": members,
        "roles": to_string_set(_first(raw, a["roles"])),
        "languages": to_string_set(_first(raw, a["languages"])),
        "date": parse_date(_first(raw, a["date"])),
        "available_time": coerce_available_time(_first(raw, a["available_time"])),
        "living_area": clean_text(_first(raw, a["living_area"])),
        "group": clean_text(_first(raw, a["group"])),
        "operation_id": clean_text(_first(raw, a["operation_id"])),
        "operation_name": clean_text(_first(raw, a["operation_name"])),
        "assignment_status": coerce_assignment_status(raw),
        "assigned_date": parse_datetime(_first(raw, a["assigned_date"])),
        "assigned_to": clean_text(_first(raw, a["assigned_to"])),
        "assignment_notes": clean_text(_first(raw, a["assignment_notes"])),
        "notes": clean_text(_first(raw, a["notes"])),
    }


def normalize_operations(raws):
    operations = [normalize_operation(r) for r in raws]
    missing_ids = sum(1 for op in operations if not op["id"])
    if missing_ids:
        logger.warning(f"{missing_ids} operation record(s) have no id")
    return operations


def normalize_volunteers(raws):
    return [normalize_volunteer(r) for r in raws]
