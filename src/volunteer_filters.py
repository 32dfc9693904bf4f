"""
Volunteer search and listing: multi-predicate filter with a deterministic sort.

Free-text search is OR across fields; role/language/time facets are AND
(the volunteer must hold every selected value).
"""
import logging
from dataclasses import dataclass, fields
from datetime import date

from volunteer_normalizer import (
    ASSIGNED,
    INDIVIDUAL,
    NOT_ASSIGNED,
    TEAM,
    clean_text,
    coerce_available_time,
    parse_date,
    to_int,
    to_string_set,
)
from operation_matching import operation_display_name

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100
MAX_PAGE_LIMIT = 500


@dataclass(frozen=True)
class VolunteerFilter:
    text_query: str = ""
    operation_name_contains: str = ""
    volunteer_type: str = ""
    assigned_state: str = ""
    languages: frozenset = frozenset()
    roles: frozenset = frozenset()
    living_area_contains: str = ""
    date_from: date = None
    date_to: date = None
    available_time: frozenset = frozenset()
    operation_id: str = ""

    @classmethod
    def coerce(cls, **kwargs):
        """Build a filter from loose values (query params, form fields)."""
        known = {f.name for f in fields(cls)}
        unknown = set(kwargs) - known
        if unknown:
            raise ValueError(f"Unknown filter field(s): {sorted(unknown)}")

        return cls(
            text_query=clean_text(kwargs.get("text_query")),
            operation_name_contains=clean_text(kwargs.get("operation_name_contains")),
            volunteer_type=_coerce_volunteer_type(kwargs.get("volunteer_type")),
            assigned_state=_coerce_assigned_state(kwargs.get("assigned_state")),
            languages=to_string_set(kwargs.get("languages")),
            roles=to_string_set(kwargs.get("roles")),
            living_area_contains=clean_text(kwargs.get("living_area_contains")),
            date_from=parse_date(kwargs.get("date_from")),
            date_to=parse_date(kwargs.get("date_to")),
            available_time=coerce_available_time(kwargs.get("available_time")),
            operation_id=clean_text(kwargs.get("operation_id")),
        )


def _coerce_volunteer_type(value):
    text = clean_text(value).lower()
    if not text:
        return ""
    if text not in (INDIVIDUAL, TEAM):
        raise ValueError(f"Unknown volunteer type: {value!r}")
    return text


def _coerce_assigned_state(value):
    if value is None or value == "":
        return ""
    if isinstance(value, bool):
        return ASSIGNED if value else NOT_ASSIGNED
    text = clean_text(value).lower()
    if text in ("assigned", "true", "1", "yes"):
        return ASSIGNED
    if text in ("not_assigned", "unassigned", "false", "0", "no"):
        return NOT_ASSIGNED
    raise ValueError(f"Unknown assigned state: {value!r}")


def _contains(haystack, needle):
    return needle.lower() in (haystack or "").lower()


def type_label(volunteer):
    return TEAM if volunteer.get("volunteer_type") == TEAM else INDIVIDUAL


def search_fields(volunteer, operations):
    """Every field the free-text query looks at."""
    return [
        volunteer.get("full_name", ""),
        volunteer.get("phone", ""),
        volunteer.get("email", ""),
        volunteer.get("living_area", ""),
        operation_display_name(volunteer, operations),
        type_label(volunteer),
        *sorted(volunteer.get("roles", ())),
        *sorted(volunteer.get("languages", ())),
        volunteer.get("notes", ""),
        volunteer.get("assigned_to", ""),
    ]


# Predicate name -> (is active, test)
def _predicates(criteria, operations):
    query = criteria.text_query.strip()
    op_needle = criteria.operation_name_contains.strip()
    area_needle = criteria.living_area_contains.strip()

    return {
        "text_query": (
            bool(query),
            lambda v: any(_contains(f, query) for f in search_fields(v, operations)),
        ),
        "operation_name_contains": (
            bool(op_needle),
            lambda v: _contains(operation_display_name(v, operations), op_needle),
        ),
        "volunteer_type": (
            bool(criteria.volunteer_type),
            lambda v: type_label(v) == criteria.volunteer_type,
        ),
        "assigned_state": (
            bool(criteria.assigned_state),
            lambda v: v.get("assignment_status") == criteria.assigned_state,
        ),
        "languages": (
            bool(criteria.languages),
            lambda v: criteria.languages <= set(v.get("languages", ())),
        ),
        "roles": (
            bool(criteria.roles),
            lambda v: criteria.roles <= set(v.get("roles", ())),
        ),
        "living_area_contains": (
            bool(area_needle),
            lambda v: _contains(v.get("living_area", ""), area_needle),
        ),
        "date_from": (
            criteria.date_from is not None,
            lambda v: v.get("date") is not None and v["date"] >= criteria.date_from,
        ),
        "date_to": (
            criteria.date_to is not None,
            lambda v: v.get("date") is not None and v["date"] <= criteria.date_to,
        ),
        "available_time": (
            bool(criteria.available_time),
            lambda v: criteria.available_time <= set(v.get("available_time", ())),
        ),
        "operation_id": (
            bool(criteria.operation_id),
            lambda v: v.get("operation_id", "") == criteria.operation_id,
        ),
    }


def sort_key(volunteer):
    return (volunteer.get("full_name", "").casefold(), volunteer.get("id", ""))


def filter_volunteers(volunteers, criteria=None, operations=None, prefiltered=()):
    """
    Filter and sort a volunteer set.

    Args:
        volunteers: canonical volunteer dicts
        criteria: VolunteerFilter (or None for no filtering)
        operations: operation list used to resolve operation names
        prefiltered: predicate names an external query layer already applied;
            those are skipped so the same predicate never runs twice

    Returns:
        new list sorted by full name (case-insensitive), then id
    """
    if criteria is None:
        criteria = VolunteerFilter()
    if operations is None:
        operations = []

    predicates = _predicates(criteria, operations)
    unknown = set(prefiltered) - set(predicates)
    if unknown:
        raise ValueError(f"Unknown prefiltered predicate(s): {sorted(unknown)}")

    active = [test for name, (on, test) in predicates.items() if on and name not in prefiltered]
    result = [v for v in volunteers if all(test(v) for test in active)]
    result.sort(key=sort_key)

    logger.debug(f"Filtered {len(volunteers)} volunteers to {len(result)} ({len(active)} predicates)")
    return result


def paginate(items, page=DEFAULT_PAGE, limit=DEFAULT_LIMIT):
    """Slice a result list; limit is clamped to 1..MAX_PAGE_LIMIT, page to >= 1."""
    limit = max(1, min(MAX_PAGE_LIMIT, to_int(limit, DEFAULT_LIMIT)))
    page = max(1, to_int(page, DEFAULT_PAGE))
    start = (page - 1) * limit
    return {
        "total": len(items),
        "page": page,
        "limit": limit,
        "items": items[start:start + limit],
    }


def operation_name_options(operations, volunteers):
    """Sorted, de-duplicated operation names for a filter dropdown."""
    names = {op["name"] for op in operations if op["name"]}
    names |= {operation_display_name(v, operations) for v in volunteers}
    names.discard("")
    return sorted(names)


def search_suggestions(volunteers, operations):
    """Distinct values worth offering as search completions."""
    values = set()
    for v in volunteers:
        for key in ("full_name", "phone", "email", "living_area"):
            if v.get(key):
                values.add(v[key])
        values.add(operation_display_name(v, operations))
        values |= set(v.get("roles", ()))
        values |= set(v.get("languages", ()))
    values.discard("")
    return sorted(values, key=str.casefold)
