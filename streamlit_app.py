import streamlit as st
import pandas as pd
from pathlib import Path
import sys
import logging

sys.path.insert(0, str(Path(__file__).parent / "src"))

from relief_data import load_snapshot, find_input_file, save_volunteers, archive_existing
from capacity_accounting import over_assigned
from capacity_reporting import capacity_table, volunteer_table, generate_capacity_report, generate_dashboard
from assignment_stats import summarize, summarize_overview
from assignment_state import execute_assignment
from volunteer_filters import VolunteerFilter, filter_volunteers, operation_name_options
from volunteer_normalizer import ROLE_OPTIONS, LANGUAGE_OPTIONS, TIME_SLOTS, ASSIGNED

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Relief Volunteer Console", layout="wide")

st.title("Relief Volunteer Assignment Console")
st.markdown("---")

project_root = Path(__file__).parent
input_dir = project_root / "input"
output_dir = project_root / "output"

input_dir.mkdir(exist_ok=True)
output_dir.mkdir(exist_ok=True)

try:
    operations, volunteers = load_snapshot(input_dir)
except FileNotFoundError as e:
    st.error(str(e))
    st.info("Place operations.csv/json and volunteers.csv/json in the input directory")
    st.stop()

option = st.selectbox(
    "Choose a view:",
    [
        "1) Overview and capacity",
        "2) Volunteers (search and assign)",
        "3) Reports",
    ]
)

st.markdown("---")

if option == "1) Overview and capacity":
    stats = summarize(volunteers)
    overview = summarize_overview(operations, volunteers)

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Volunteers", stats['total'])
    with col2:
        st.metric("Assigned", stats['assigned'])
    with col3:
        st.metric("Unassigned", stats['unassigned'])
    with col4:
        st.metric("Assigned Rate", f"{stats['assigned_percentage']}%")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Capacity Needed", overview['total_needed'])
    with col2:
        st.metric("Assigned Capacity", overview['total_assigned_capacity'])
    with col3:
        st.metric("Registered Capacity", overview['total_registered_capacity'])

    table = capacity_table(operations, volunteers)
    over = table[table['Remaining'] < 0]
    if not over.empty:
        st.warning(f"{len(over)} operation(s) are over-assigned: {', '.join(over['Operation'])}")
    st.dataframe(table, use_container_width=True)

elif option == "2) Volunteers (search and assign)":
    st.header("Volunteers")

    col1, col2, col3 = st.columns(3)
    with col1:
        text_query = st.text_input("Search name, phone, email, area, operation, roles, languages, notes")
        operation_name = st.selectbox("Operation", [""] + operation_name_options(operations, volunteers))
    with col2:
        volunteer_type = st.selectbox("Type", ["", "individual", "team"])
        assigned_state = st.selectbox("Assignment", ["", "assigned", "not_assigned"])
    with col3:
        living_area = st.text_input("Living area")
        date_from = st.date_input("Available from", value=None)

    roles = st.multiselect("Roles (all required)", ROLE_OPTIONS)
    languages = st.multiselect("Languages (all required)", LANGUAGE_OPTIONS)
    time_slots = st.multiselect("Time", list(TIME_SLOTS))

    criteria = VolunteerFilter.coerce(
        text_query=text_query,
        operation_name_contains=operation_name,
        volunteer_type=volunteer_type,
        assigned_state=assigned_state,
        roles=roles,
        languages=languages,
        living_area_contains=living_area,
        date_from=date_from,
        available_time=time_slots,
    )
    filtered = filter_volunteers(volunteers, criteria, operations)

    st.write(f"{len(filtered)} of {len(volunteers)} volunteers")
    st.dataframe(volunteer_table(filtered, operations), use_container_width=True)

    st.subheader("Assign / unassign")
    if filtered:
        labels = {f"{v['full_name']} ({v['id']}) - {v['assignment_status']}": v for v in filtered}
        choice = st.selectbox("Volunteer", list(labels))
        selected = labels[choice]
        target = ""
        if selected['assignment_status'] != ASSIGNED:
            names = [op['name'] for op in operations if op['name']]
            default = names.index(selected['operation_name']) if selected['operation_name'] in names else 0
            target = st.selectbox("Assign to operation", names, index=default) if names else ""

        if st.button("Toggle assignment"):
            try:
                result = execute_assignment(
                    {'volunteer_id': selected['id'], 'assigned_to': target or None},
                    volunteers, operations
                )
                if result.changed:
                    volunteers_file = find_input_file(input_dir, "volunteers")
                    out_file = volunteers_file if volunteers_file.suffix.lower() in (".csv", ".json") \
                        else volunteers_file.with_suffix(".csv")
                    archive_existing([volunteers_file], project_root / "archive")
                    save_volunteers(result.volunteers, out_file)
                st.success(f"✅ {selected['full_name']}: {result.volunteer['assignment_status']}")
                for snapshot in result.capacity:
                    st.write(f"{snapshot['operation_name']}: {snapshot['filled']}/{snapshot['needed']} "
                             f"(remaining {snapshot['remaining']})")
                if over_assigned(result.capacity):
                    st.warning("This operation is now over-assigned")
                for warning in result.warnings:
                    st.warning(str(warning))
            except Exception as e:
                st.error(f"Error updating assignment: {str(e)}")
                logger.exception("Error in toggle assignment")

elif option == "3) Reports":
    st.header("Capacity Report and Dashboard")
    output_format = st.selectbox("Output format:", ["csv", "html", "markdown"])

    if st.button("Generate Capacity Report"):
        try:
            report_path = generate_capacity_report(project_root, operations, volunteers, output_format)
            st.success(f"✅ Generated capacity report: {report_path.name}")
            if output_format == 'csv':
                st.dataframe(pd.read_csv(report_path), use_container_width=True)
            with open(report_path, 'rb') as f:
                st.download_button(label="Download Report", data=f, file_name=report_path.name)
        except Exception as e:
            st.error(f"Error generating report: {str(e)}")
            logger.exception("Error in generate capacity report")

    if st.button("Generate Dashboard"):
        try:
            dashboard_path = generate_dashboard(project_root, operations, volunteers)
            with open(dashboard_path, 'r', encoding='utf-8') as f:
                st.components.v1.html(f.read(), height=800, scrolling=True)
        except Exception as e:
            st.error(f"Error generating dashboard: {str(e)}")
            logger.exception("Error in generate dashboard")

st.markdown("---")
st.markdown("### 📁 File Locations")
st.write(f"**Input Directory:** `{input_dir}`")
st.write(f"**Output Directory:** `{output_dir}`")
