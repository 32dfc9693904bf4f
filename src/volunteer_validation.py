"""
Registration validation for volunteer records.

Malformed registrations are rejected here, before they reach the engine.
The engine itself still degrades safely on anything that slips through.
"""
import re
import logging

from volunteer_normalizer import INDIVIDUAL, TEAM

logger = logging.getLogger(__name__)

# Sri Lankan formats: 0XXXXXXXXX, 94XXXXXXXXX, +94XXXXXXXXX
PHONE_PATTERN = re.compile(r"^(0[1-9]\d{8}|94[1-9]\d{8}|\+94[1-9]\d{8})$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationError(ValueError):
    """Raised for malformed input; `messages` lists every problem found."""

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


def check_consistency(volunteer):
    """Members/type invariant: team => members >= 2, individual => members == 1."""
    members = volunteer.get("members", 1)
    vtype = volunteer.get("volunteer_type", INDIVIDUAL)
    if vtype == TEAM and members < 2:
        return ["Teams must have at least 2 members."]
    if vtype == INDIVIDUAL and members != 1:
        return ["Individual volunteers must have exactly 1 member."]
    return []


def validate_registration(volunteer, operations=None, capacity=None):
    """
    Validate a normalized volunteer registration.

    Args:
        volunteer: canonical volunteer dict
        operations: optional operation list; when given the operation id must exist
        capacity: optional capacity snapshot for the chosen operation; the
            registration may not take more than the remaining slots

    Returns:
        list of messages (empty when valid)
    """
    errors = []

    full_name = volunteer.get("full_name", "")
    phone = volunteer.get("phone", "")
    email = volunteer.get("email", "")

    if not full_name or not phone:
        errors.append("Please fill your name and phone.")
    if full_name and re.search(r"\d", full_name):
        errors.append("Full name should not contain numbers.")
    if phone and not PHONE_PATTERN.match(phone):
        errors.append("Please enter a valid phone number.")
    if email and not EMAIL_PATTERN.match(email):
        errors.append("Invalid email format.")

    if volunteer.get("date") is None:
        errors.append("Please choose an available date.")
    if not volunteer.get("roles"):
        errors.append("Please select at least one role/skill.")
    if not volunteer.get("available_time"):
        errors.append("Please choose Daytime and/or Night.")

    operation_id = volunteer.get("operation_id", "")
    if not operation_id:
        errors.append("Please select an operation.")
    elif operations is not None and not any(op["id"] == operation_id for op in operations):
        errors.append(f"Unknown operation: {operation_id}")

    errors.extend(check_consistency(volunteer))

    if capacity is not None:
        members = volunteer.get("members", 1) if volunteer.get("volunteer_type") == TEAM else 1
        remaining = capacity["remaining"]
        if members > remaining:
            errors.append(f"Only {max(remaining, 0)} slot(s) remaining for this operation.")

    return errors


def ensure_valid_registration(volunteer, operations=None, capacity=None):
    """Raise ValidationError unless the registration is valid."""
    errors = validate_registration(volunteer, operations, capacity)
    if errors:
        raise ValidationError(errors)
    return volunteer
