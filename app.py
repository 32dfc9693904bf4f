#!/usr/bin/env python3
"""
Main entry point for the Relief Volunteer Assignment tool.

Usage:
    python app.py process                          # Validate + capacity report (default)
    python app.py validate                         # Check volunteer/operation links only
    python app.py report --output-format=html      # Capacity report only
    python app.py dashboard                        # Generate HTML dashboard
    python app.py assign --volunteer-id=v1 --assigned-to="Flood Relief A"
    python app.py assign --volunteer-id=v1 --unassign
    python app.py search --query=medic --role=Driver --language=Tamil
"""
import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from relief_processor import process, assign, search, validate_operation_links
from relief_data import load_snapshot
from capacity_reporting import generate_capacity_report, generate_dashboard
from volunteer_normalizer import ASSIGNED, NOT_ASSIGNED


def setup_logging(verbose=False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler('app.log')
        ]
    )
    return logging.getLogger(__name__)


def validate_command(args, project_root, logger):
    """Report volunteers that match no operation."""
    logger.info("Running link validation...")
    operations, volunteers = load_snapshot(project_root / "input")
    unmatched = validate_operation_links(operations, volunteers, args.suggestion_threshold)

    if unmatched.empty:
        logger.info("All volunteers resolve to an operation")
        return 0

    logger.warning(f"{len(unmatched)} volunteer(s) match no operation")
    for _, row in unmatched.iterrows():
        hint = f" -> did you mean {row['Suggestions']}?" if row['Suggestions'] else ""
        logger.warning(f"  {row['Volunteer_ID']} {row['Full_Name']}: "
                       f"'{row['Assigned_To'] or row['Operation_Name'] or row['Operation_ID']}'{hint}")
    return 0


def process_command(args, project_root, logger):
    """Validate registrations and write the capacity report."""
    logger.info("Starting processing...")

    config = {
        'strict_validation': args.strict,
        'suggestion_threshold': args.suggestion_threshold,
        'output_format': args.output_format,
    }

    try:
        results = process(project_root, config)
        stats = results['statistics']
        logger.info("Processing complete!")
        logger.info(f"  Operations: {results['operation_count']}")
        logger.info(f"  Volunteers: {results['volunteer_count']}")
        logger.info(f"  Assigned: {stats['assigned']} ({stats['assigned_percentage']}%)")
        logger.info(f"  Unmatched: {results['unmatched_count']}")
        logger.info(f"  Invalid registrations: {len(results['invalid_registrations'])}")
        if results['over_assigned']:
            logger.warning(f"  Over-assigned operations: {', '.join(results['over_assigned'])}")
        return 0

    except Exception as e:
        logger.error(f"Processing failed: {e}", exc_info=True)
        return 1


def report_command(args, project_root, logger):
    """Generate the capacity report only."""
    logger.info("Generating report...")
    operations, volunteers = load_snapshot(project_root / "input")
    report_path = generate_capacity_report(project_root, operations, volunteers, args.output_format)
    logger.info(f"Capacity report: {report_path}")
    return 0


def dashboard_command(args, project_root, logger):
    """Generate HTML dashboard."""
    logger.info("Generating dashboard...")
    operations, volunteers = load_snapshot(project_root / "input")
    dashboard_path = generate_dashboard(project_root, operations, volunteers)
    logger.info(f"Dashboard: {dashboard_path}")
    return 0


def assign_command(args, project_root, logger):
    """Apply one assignment command."""
    if not args.volunteer_id:
        logger.error("--volunteer-id is required for assign mode")
        return 1

    command = {'volunteer_id': args.volunteer_id}
    if args.unassign:
        command['target_state'] = NOT_ASSIGNED
    elif args.assigned_to or args.operation_id:
        command['target_state'] = ASSIGNED
    # Neither flag: toggle
    if args.assigned_to:
        command['assigned_to'] = args.assigned_to
    if args.operation_id:
        command['operation_id'] = args.operation_id
    if args.notes:
        command['assignment_notes'] = args.notes

    try:
        result = assign(project_root, command)
    except (KeyError, ValueError) as e:
        logger.error(f"Assignment failed: {e}")
        return 1

    logger.info(f"Volunteer {result.volunteer['id']}: {result.volunteer['assignment_status']}"
                f"{' (unchanged)' if not result.changed else ''}")
    stats = result.statistics
    logger.info(f"  Assigned: {stats['assigned']}/{stats['total']} ({stats['assigned_percentage']}%)")
    for warning in result.warnings:
        logger.warning(f"  {warning}")
    return 0


def search_command(args, project_root, logger):
    """Print a filtered volunteer page as JSON lines."""
    filter_kwargs = {
        'text_query': args.query,
        'operation_name_contains': args.operation,
        'volunteer_type': args.type,
        'assigned_state': args.assigned,
        'roles': args.role,
        'languages': args.language,
        'living_area_contains': args.area,
        'date_from': args.date_from,
        'date_to': args.date_to,
        'available_time': args.time,
    }
    page = search(project_root, filter_kwargs, args.page, args.limit)
    logger.info(f"{page['total']} match(es); page {page['page']} (limit {page['limit']})")
    for volunteer in page['items']:
        print(json.dumps({
            'id': volunteer['id'],
            'full_name': volunteer['full_name'],
            'volunteer_type': volunteer['volunteer_type'],
            'members': volunteer['members'],
            'assignment_status': volunteer['assignment_status'],
            'operation': volunteer['operation_name'] or volunteer['assigned_to'],
        }))
    return 0


def main():
    parser = argparse.ArgumentParser(
        description='Relief Volunteer Assignment tool',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python app.py                         # Process with defaults
  python app.py validate                # Check volunteer/operation links
  python app.py report                  # Generate capacity report only
  python app.py dashboard               # Generate HTML dashboard
  python app.py assign --volunteer-id=v1 --operation-id=op1
  python app.py search --role=Medic --role=Driver
  python app.py --verbose               # Enable debug logging
        """
    )

    parser.add_argument(
        'mode',
        nargs='?',
        default='process',
        choices=['process', 'validate', 'report', 'dashboard', 'assign', 'search'],
        help='Operation mode (default: process)'
    )

    parser.add_argument('--output-format', choices=['csv', 'html', 'markdown'], default='csv',
                        help='Report output format (default: csv)')
    parser.add_argument('--strict', action='store_true',
                        help='Drop invalid registrations before accounting')
    parser.add_argument('--suggestion-threshold', type=int, default=80,
                        help='Fuzzy score 0-100 for operation name suggestions (default: 80)')

    # assign
    parser.add_argument('--volunteer-id', help='Volunteer to (un)assign')
    parser.add_argument('--assigned-to', help='Assignment target (operation name or id)')
    parser.add_argument('--operation-id', help='Assign to this operation id')
    parser.add_argument('--unassign', action='store_true', help='Return volunteer to the pool')
    parser.add_argument('--notes', help='Assignment notes')

    # search
    parser.add_argument('--query', help='Free-text search')
    parser.add_argument('--operation', help='Operation name contains')
    parser.add_argument('--type', choices=['individual', 'team'], help='Volunteer type')
    parser.add_argument('--assigned', choices=['assigned', 'not_assigned'], help='Assignment state')
    parser.add_argument('--role', action='append', default=[], help='Required role (repeatable)')
    parser.add_argument('--language', action='append', default=[], help='Required language (repeatable)')
    parser.add_argument('--area', help='Living area contains')
    parser.add_argument('--date-from', help='Available on or after (YYYY-MM-DD)')
    parser.add_argument('--date-to', help='Available on or before (YYYY-MM-DD)')
    parser.add_argument('--time', action='append', default=[], choices=['daytime', 'night'],
                        help='Required time slot (repeatable)')
    parser.add_argument('--page', type=int, default=1)
    parser.add_argument('--limit', type=int, default=100)

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose/debug logging')

    args = parser.parse_args()

    # Setup logging
    logger = setup_logging(args.verbose)

    # Get project root
    project_root = Path(__file__).parent

    logger.info(f"Starting in {args.mode} mode")

    commands = {
        'process': process_command,
        'validate': validate_command,
        'report': report_command,
        'dashboard': dashboard_command,
        'assign': assign_command,
        'search': search_command,
    }
    try:
        return commands[args.mode](args, project_root, logger)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
