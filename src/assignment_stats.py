"""
Assignment statistics and the dashboard overview.
"""
import logging

from volunteer_normalizer import ASSIGNED, TEAM
from capacity_accounting import account_all, capacity_units, match_all

logger = logging.getLogger(__name__)


def round_half_up_percent(part, total):
    """round(100 * part / total) with ties rounded up; 0 when total is 0."""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


def summarize(volunteers):
    """
    Assigned/unassigned counts for a volunteer set.

    Reads assignment_status only; a linked operation id is not an assignment.
    """
    total = len(volunteers)
    assigned = sum(1 for v in volunteers if v.get("assignment_status") == ASSIGNED)
    return {
        "total": total,
        "assigned": assigned,
        "unassigned": total - assigned,
        "assigned_percentage": round_half_up_percent(assigned, total),
    }


def summarize_overview(operations, volunteers):
    """
    Dashboard numbers across all operations.

    Capacity totals count units (team members); the team/individual split
    counts records (one team = one record). The two are reported separately.
    """
    statuses = [op.get("status", "") for op in operations]
    snapshots, _ = account_all(operations, volunteers)

    assigned = [v for v in volunteers if v.get("assignment_status") == ASSIGNED]
    matches, _ = match_all(assigned, operations)
    team_records = sum(1 for v, op, _ in matches if op is not None and v.get("volunteer_type") == TEAM)
    individual_records = sum(1 for v, op, _ in matches if op is not None and v.get("volunteer_type") != TEAM)

    return {
        "total_operations": len(operations),
        "active_operations": statuses.count("active"),
        "completed_operations": statuses.count("completed"),
        "operations_in_progress": statuses.count("active") + statuses.count("pending"),
        "total_needed": sum(s["needed"] for s in snapshots),
        "total_assigned_capacity": sum(s["filled"] for s in snapshots),
        "total_registered_capacity": sum(capacity_units(v) for v in volunteers),
        "assigned_team_records": team_records,
        "assigned_individual_records": individual_records,
    }
