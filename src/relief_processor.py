"""
Main relief volunteer processor: load snapshot, validate, account capacity, report.
"""
import logging
from collections import Counter

import pandas as pd

from relief_data import archive_existing, find_input_file, load_snapshot, save_volunteers
from volunteer_validation import validate_registration
from capacity_accounting import account_all, match_all, over_assigned
from assignment_stats import summarize
from assignment_state import execute_assignment
from operation_matching import suggest_operation_names
from volunteer_filters import VolunteerFilter, filter_volunteers, paginate
from capacity_reporting import generate_capacity_report

logger = logging.getLogger(__name__)

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------

DEFAULT_CONFIG = {
    "strict_validation": False,
    "suggestion_threshold": 80,
    "output_format": "csv",
}

REPORT_SUFFIXES = {"csv": ".csv", "markdown": ".md", "html": ".html"}


def _paths(project_root):
    return {
        "input": project_root / "input",
        "output": project_root / "output",
        "archive": project_root / "archive",
    }


# ---------------------------------------------------------
# VALIDATION
# ---------------------------------------------------------

def validate_registrations(volunteers, operations):
    """
    Returns: dict of volunteer id -> list of validation messages (invalid only)
    """
    invalid = {}
    for volunteer in volunteers:
        errors = validate_registration(volunteer, operations)
        if errors:
            invalid[volunteer["id"] or volunteer["full_name"]] = errors
    if invalid:
        logger.warning(f"Found {len(invalid)} invalid volunteer registrations")
        for key, errors in list(invalid.items())[:10]:
            logger.info(f"  {key}: {'; '.join(errors)}")
    return invalid


def validate_operation_links(operations, volunteers, threshold=80):
    """
    Volunteers that match no operation, with fuzzy suggestions for their
    free-text target or denormalized operation name.

    Returns: DataFrame with Volunteer_ID, Full_Name, Operation_ID, Assigned_To,
        Operation_Name, Status, Suggestions
    """
    matches, _ = match_all(volunteers, operations)
    known_ids = {op["id"] for op in operations if op["id"]}

    rows = []
    for volunteer, operation, _ in matches:
        if operation is not None:
            continue
        if volunteer["operation_id"] and volunteer["operation_id"] not in known_ids:
            logger.warning(
                f"Volunteer {volunteer['id'] or '?'} references unknown operation "
                f"{volunteer['operation_id']}"
            )
        text = volunteer["assigned_to"] or volunteer["operation_name"]
        suggestions = suggest_operation_names(text, operations, threshold=threshold) if text else []
        rows.append({
            "Volunteer_ID": volunteer["id"],
            "Full_Name": volunteer["full_name"],
            "Operation_ID": volunteer["operation_id"],
            "Assigned_To": volunteer["assigned_to"],
            "Operation_Name": volunteer["operation_name"],
            "Status": volunteer["assignment_status"],
            "Suggestions": "; ".join(f"{name} ({score})" for name, score in suggestions),
        })

    columns = ["Volunteer_ID", "Full_Name", "Operation_ID", "Assigned_To",
               "Operation_Name", "Status", "Suggestions"]
    return pd.DataFrame(rows, columns=columns)


# ---------------------------------------------------------
# MAIN PROCESSING
# ---------------------------------------------------------

def process(project_root, config=None):
    """
    Main processing function.

    Args:
        project_root: Path to project root
        config: Optional dict with settings like:
            - strict_validation: bool (default False)
            - suggestion_threshold: int (default 80)
            - output_format: 'csv', 'markdown' or 'html' (default 'csv')
    """
    if config is None:
        config = {}

    strict_validation = config.get('strict_validation', DEFAULT_CONFIG['strict_validation'])
    suggestion_threshold = config.get('suggestion_threshold', DEFAULT_CONFIG['suggestion_threshold'])
    output_format = config.get('output_format', DEFAULT_CONFIG['output_format'])
    if output_format not in REPORT_SUFFIXES:
        raise ValueError(f"Unknown output format: {output_format}")

    paths = _paths(project_root)
    operations, volunteers = load_snapshot(paths["input"])

    invalid = validate_registrations(volunteers, operations)
    if strict_validation and invalid:
        volunteers = [v for v in volunteers if (v["id"] or v["full_name"]) not in invalid]
        logger.info(f"Dropped {len(invalid)} invalid registrations (strict validation)")

    snapshots, warnings = account_all(operations, volunteers)
    flagged = over_assigned(snapshots)
    statistics = summarize(volunteers)

    unmatched_df = validate_operation_links(operations, volunteers, suggestion_threshold)
    match_types = Counter(match_type for _, _, match_type in match_all(volunteers, operations)[0])
    logger.info(f"Match types: {dict(match_types)}")

    # Archive previous outputs
    report_path = paths["output"] / f"capacity_report{REPORT_SUFFIXES[output_format]}"
    unmatched_path = paths["output"] / "unmatched_volunteers.csv"
    archive_existing([report_path, unmatched_path], paths["archive"])

    generate_capacity_report(project_root, operations, volunteers, output_format)
    paths["output"].mkdir(exist_ok=True)
    unmatched_df.to_csv(unmatched_path, index=False)
    logger.info(f"Wrote {len(unmatched_df)} unmatched volunteers to {unmatched_path}")

    return {
        'volunteer_count': len(volunteers),
        'operation_count': len(operations),
        'statistics': statistics,
        'capacity': snapshots,
        'over_assigned': [s['operation_id'] for s in flagged],
        'unmatched_count': len(unmatched_df),
        'invalid_registrations': invalid,
        'ambiguous_matches': len(warnings),
    }


def assign(project_root, command, now=None):
    """
    Execute one assignment command against the input snapshot and save it.

    Returns: TransitionResult
    """
    paths = _paths(project_root)
    operations, volunteers = load_snapshot(paths["input"])

    result = execute_assignment(command, volunteers, operations, now=now)
    if not result.changed:
        logger.info(f"Volunteer {result.volunteer['id']}: no change")
        return result

    volunteers_file = find_input_file(paths["input"], "volunteers")
    target = volunteers_file if volunteers_file.suffix.lower() in (".csv", ".json") \
        else volunteers_file.with_suffix(".csv")
    archive_existing([volunteers_file], paths["archive"])
    save_volunteers(result.volunteers, target)

    for snapshot in result.capacity:
        logger.info(
            f"  {snapshot['operation_name']}: filled {snapshot['filled']}/{snapshot['needed']} "
            f"(remaining {snapshot['remaining']})"
        )
    over_assigned(result.capacity)
    return result


def search(project_root, filter_kwargs=None, page=1, limit=100):
    """Filtered, sorted page of volunteers from the input snapshot."""
    operations, volunteers = load_snapshot(_paths(project_root)["input"])
    criteria = VolunteerFilter.coerce(**(filter_kwargs or {}))
    return paginate(filter_volunteers(volunteers, criteria, operations), page, limit)
