"""
Capacity accounting: needed vs filled vs remaining volunteer capacity per operation.

Filled capacity is always recomputed from the full volunteer snapshot.
Remaining capacity is never clamped; a negative value means over-assignment.
"""
import logging

from volunteer_normalizer import ASSIGNED, TEAM, to_int
from operation_matching import find_operation_match

logger = logging.getLogger(__name__)


def capacity_units(volunteer):
    """1 for individuals, `members` for teams (missing/invalid members count as 1)."""
    if volunteer.get("volunteer_type") == TEAM:
        members = to_int(volunteer.get("members"), 1)
        return members if members >= 1 else 1
    return 1


def needed_capacity(operation):
    needed = to_int(operation.get("volunteer_count_needed"), 0)
    return needed if needed >= 0 else 0


def _snapshot(operation, filled):
    needed = needed_capacity(operation)
    return {
        "operation_id": operation["id"],
        "operation_name": operation["name"],
        "needed": needed,
        "filled": filled,
        "remaining": needed - filled,
    }


def account_for(operation, volunteers, operations):
    """
    Capacity snapshot for a single operation.

    Args:
        operation: canonical operation dict
        volunteers: full volunteer snapshot
        operations: full operation list; volunteers are matched against all of
            it so an id match elsewhere wins over a name match here

    Returns:
        dict with operation_id, operation_name, needed, filled, remaining
    """
    filled = 0
    for volunteer in volunteers:
        if volunteer.get("assignment_status") != ASSIGNED:
            continue
        matched, _, _ = find_operation_match(volunteer, operations)
        if matched == operation:
            filled += capacity_units(volunteer)
    return _snapshot(operation, filled)


def match_all(volunteers, operations):
    """
    Match every volunteer once.

    Returns: (list of (volunteer, operation or None, match_type), warnings)
    """
    matches = []
    warnings = []
    for volunteer in volunteers:
        operation, match_type, warning = find_operation_match(volunteer, operations)
        if warning is not None:
            warnings.append(warning)
        matches.append((volunteer, operation, match_type))
    return matches, warnings


def account_all(operations, volunteers):
    """
    Capacity snapshots for every operation, in operation order.

    Returns: (snapshots, ambiguity warnings)
    """
    filled = {id(op): 0 for op in operations}
    assigned = [v for v in volunteers if v.get("assignment_status") == ASSIGNED]
    matches, warnings = match_all(assigned, operations)

    for volunteer, operation, _ in matches:
        if operation is not None:
            filled[id(operation)] += capacity_units(volunteer)

    snapshots = [_snapshot(op, filled[id(op)]) for op in operations]
    return snapshots, warnings


def over_assigned(snapshots):
    """Snapshots whose remaining capacity went negative."""
    flagged = [s for s in snapshots if s["remaining"] < 0]
    for s in flagged:
        logger.warning(
            f"Operation '{s['operation_name']}' ({s['operation_id']}) is over-assigned "
            f"by {-s['remaining']} (needed {s['needed']}, filled {s['filled']})"
        )
    return flagged
