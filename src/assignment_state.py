"""
Assignment state machine for volunteers (not_assigned <-> assigned).

Transitions are pure: they return a new volunteer dict and never touch the
input snapshot. Callers may apply one optimistically and reconcile later.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime

from volunteer_normalizer import (
    ASSIGNED,
    ASSIGNMENT_STATES,
    NOT_ASSIGNED,
    clean_text,
    parse_datetime,
)
from operation_matching import find_operation_match, normalize_name, resolve_target
from capacity_accounting import account_for
from assignment_stats import summarize
from volunteer_validation import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    volunteer: dict
    volunteers: list
    changed: bool
    previous_operation_id: str = ""
    operation_id: str = ""
    capacity: list = field(default_factory=list)
    statistics: dict = field(default_factory=dict)
    warnings: list = field(default_factory=list)


def _find_operation_by_id(operation_id, operations):
    for operation in operations:
        if operation["id"] and operation["id"] == operation_id:
            return operation
    return None


def _resolve(volunteer, operations, assigned_to, operation_id):
    """Return (target text, operation or None); ('', None) when nothing was asked for."""
    operation_id = clean_text(operation_id)
    if operation_id:
        operation = _find_operation_by_id(operation_id, operations)
        if operation is None:
            raise ValidationError(f"Unknown operation: {operation_id}")
        return operation["name"] or operation["id"], operation

    target = clean_text(assigned_to)
    if not target:
        return "", None
    operation = resolve_target(target, operations)
    if operation is not None:
        return operation["name"] or target, operation
    return target, None


def _same_target(volunteer, target, operation, operations):
    if operation is not None:
        return find_operation_match(volunteer, operations)[0] == operation
    return normalize_name(volunteer.get("assigned_to", "")) == normalize_name(target)


def apply_transition(volunteer, target_state, operations, assigned_to=None, operation_id=None,
                     assigned_date=None, assignment_notes=None, now=None):
    """
    Move a volunteer to `target_state`.

    Returns:
        (new volunteer dict, changed flag)
    """
    if target_state not in ASSIGNMENT_STATES:
        raise ValueError(f"Unknown assignment state: {target_state!r}")

    current = volunteer.get("assignment_status", NOT_ASSIGNED)

    if target_state == NOT_ASSIGNED:
        if current == NOT_ASSIGNED:
            return dict(volunteer), False
        updated = dict(volunteer)
        updated.update(
            assignment_status=NOT_ASSIGNED,
            assigned_date=None,
            assigned_to="",
            assignment_notes="",
        )
        return updated, True

    target, operation = _resolve(volunteer, operations, assigned_to, operation_id)

    if current == ASSIGNED and (not target or _same_target(volunteer, target, operation, operations)):
        return dict(volunteer), False
    if not target:
        raise ValidationError("An assignment target (assigned_to or operation_id) is required.")

    when = parse_datetime(assigned_date) or now or datetime.now()
    notes = clean_text(assignment_notes) if assignment_notes is not None else volunteer.get("assignment_notes", "")

    updated = dict(volunteer)
    updated.update(
        assignment_status=ASSIGNED,
        assigned_to=target,
        assigned_date=when,
        assignment_notes=notes,
    )
    if operation is not None:
        updated.update(operation_id=operation["id"], operation_name=operation["name"])
    else:
        logger.warning(
            f"Assignment target '{target}' for volunteer {volunteer.get('id') or '?'} "
            f"does not resolve to a known operation"
        )
    return updated, True


def toggle_assignment(volunteer, operations, assigned_to=None, now=None):
    """
    Operator toggle: unassign an assigned volunteer, or assign an unassigned one
    to the given target, falling back to the record's own target fields.
    """
    if volunteer.get("assignment_status") == ASSIGNED:
        return apply_transition(volunteer, NOT_ASSIGNED, operations, now=now)

    target = (clean_text(assigned_to)
              or volunteer.get("assigned_to", "")
              or volunteer.get("operation_name", ""))
    if target:
        return apply_transition(volunteer, ASSIGNED, operations, assigned_to=target, now=now)
    return apply_transition(volunteer, ASSIGNED, operations,
                            operation_id=volunteer.get("operation_id", ""), now=now)


def _command_value(command, *keys):
    for key in keys:
        if command.get(key) is not None:
            return command[key]
    return None


def execute_assignment(command, volunteers, operations, now=None):
    """
    Apply one assignment command to a volunteer snapshot.

    Args:
        command: dict with volunteer_id, target_state and optionally
            assigned_to, operation_id, assigned_date, assignment_notes
            (camelCase keys accepted)
        volunteers: current volunteer snapshot (not modified)
        operations: operation list

    Returns:
        TransitionResult; capacity and statistics are computed from the
        post-transition snapshot
    """
    volunteer_id = clean_text(_command_value(command, "volunteer_id", "volunteerId"))
    target_state = _command_value(command, "target_state", "targetState")
    if not volunteer_id:
        raise KeyError("Assignment command has no volunteer_id")

    index = next((i for i, v in enumerate(volunteers) if v["id"] == volunteer_id), None)
    if index is None:
        raise KeyError(f"Volunteer not found: {volunteer_id}")
    before = volunteers[index]

    if target_state is None:
        after, changed = toggle_assignment(
            before, operations, _command_value(command, "assigned_to", "assignedTo"), now=now
        )
    else:
        after, changed = apply_transition(
            before,
            target_state,
            operations,
            assigned_to=_command_value(command, "assigned_to", "assignedTo"),
            operation_id=_command_value(command, "operation_id", "operationId"),
            assigned_date=_command_value(command, "assigned_date", "assignedDate"),
            assignment_notes=_command_value(command, "assignment_notes", "assignmentNotes"),
            now=now,
        )

    snapshot = list(volunteers)
    snapshot[index] = after

    previous_op, _, previous_warning = find_operation_match(before, operations)
    current_op, _, current_warning = find_operation_match(after, operations)
    warnings = [w for w in (previous_warning, current_warning) if w is not None]

    affected = []
    for operation in (previous_op, current_op):
        if operation is not None and all(operation is not seen for seen in affected):
            affected.append(operation)

    capacity = [account_for(op, snapshot, operations) for op in affected]
    statistics = summarize(snapshot)

    if changed:
        logger.info(
            f"Volunteer {volunteer_id}: {before.get('assignment_status')} -> "
            f"{after.get('assignment_status')} ({after.get('assigned_to') or 'no target'})"
        )

    return TransitionResult(
        volunteer=after,
        volunteers=snapshot,
        changed=changed,
        previous_operation_id=previous_op["id"] if previous_op is not None else "",
        operation_id=current_op["id"] if current_op is not None else "",
        capacity=capacity,
        statistics=statistics,
        warnings=warnings,
    )
