"""
Operation matching: which operation (if any) a volunteer record belongs to.

Matching strategy (in order of precedence):
1. Identity match on operation id
2. Name match against the free-text assignment target or the
   denormalized operation name (legacy records)
3. No match
"""
import re
import logging

from rapidfuzz import fuzz, process

from volunteer_normalizer import clean_text

logger = logging.getLogger(__name__)


class AmbiguousMatchWarning(UserWarning):
    """Several operations share the name a volunteer was matched on."""

    def __init__(self, volunteer_id, name, candidate_ids, chosen_id):
        self.volunteer_id = volunteer_id
        self.name = name
        self.candidate_ids = list(candidate_ids)
        self.chosen_id = chosen_id
        super().__init__(
            f"Volunteer {volunteer_id or '?'} matched '{name}' on "
            f"{len(self.candidate_ids)} operations {self.candidate_ids}; using {chosen_id}"
        )


def normalize_name(text):
    """Case-insensitive, trimmed form used for name comparison."""
    return clean_text(text).lower()


def natural_key(value):
    """Sort key that orders 'op2' before 'op10'."""
    return [int(part) if part.isdigit() else part.lower()
            for part in re.split(r"(\d+)", str(value))]


def match_by_id(volunteer, operations):
    op_id = volunteer.get("operation_id", "")
    if not op_id:
        return None
    for operation in operations:
        if operation["id"] and operation["id"] == op_id:
            return operation
    return None


def match_by_name(volunteer, operations):
    """
    Name fallback for records without a usable operation id.

    Tries `assigned_to` first, then the denormalized `operation_name`.
    Blank strings never match each other.

    Returns: (operation or None, candidates sharing the matched name)
    """
    for field in ("assigned_to", "operation_name"):
        wanted = normalize_name(volunteer.get(field, ""))
        if not wanted:
            continue
        candidates = [op for op in operations if op["name"] and normalize_name(op["name"]) == wanted]
        if candidates:
            candidates.sort(key=lambda op: natural_key(op["id"]))
            return candidates[0], candidates
    return None, []


def find_operation_match(volunteer, operations):
    """
    Resolve the operation a volunteer is associated with.

    Returns: (operation or None, match_type, AmbiguousMatchWarning or None)
    """
    operation = match_by_id(volunteer, operations)
    if operation is not None:
        return operation, "id", None

    operation, candidates = match_by_name(volunteer, operations)
    if operation is not None:
        warning = None
        if len(candidates) > 1:
            warning = AmbiguousMatchWarning(
                volunteer.get("id", ""),
                operation["name"],
                [op["id"] for op in candidates],
                operation["id"],
            )
            logger.warning(str(warning))
        return operation, "name", warning

    return None, "no_match", None


def match_operation(volunteer, operations):
    """
    Simple wrapper that returns just the matched operation.
    """
    operation, _, _ = find_operation_match(volunteer, operations)
    return operation


def operation_display_name(volunteer, operations):
    """Matched operation's name, else the denormalized copy, else ''."""
    operation = match_operation(volunteer, operations)
    if operation is not None and operation["name"]:
        return operation["name"]
    return volunteer.get("operation_name", "")


def resolve_target(target, operations):
    """Resolve a free-text assignment target to an operation by id, then name."""
    target = clean_text(target)
    if not target:
        return None
    for operation in operations:
        if operation["id"] and operation["id"] == target:
            return operation
    operation, _ = match_by_name({"assigned_to": target}, operations)
    return operation


def suggest_operation_names(text, operations, limit=3, threshold=80):
    """
    Rank operation names close to `text` for link-validation reports.

    Returns: list of (operation_name, score) with score >= threshold
    """
    query = normalize_name(text)
    names = sorted({op["name"] for op in operations if op["name"]})
    if not query or not names:
        return []
    matches = process.extract(
        query,
        names,
        scorer=fuzz.token_sort_ratio,
        processor=normalize_name,
        limit=limit,
        score_cutoff=threshold,
    )
    return [(name, round(score, 1)) for name, score, _ in matches]
