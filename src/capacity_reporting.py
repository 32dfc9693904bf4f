"""
Reporting module for operation capacity reports and dashboard generation.
"""
import base64
import logging
from io import BytesIO

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from capacity_accounting import account_all
from assignment_stats import summarize, summarize_overview
from operation_matching import operation_display_name
from relief_data import volunteers_to_frame

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "Operation_ID", "Operation", "Status", "Needed", "Filled",
    "Remaining", "Fill_Percent", "Priority",
]


def get_priority(remaining, fill_pct):
    if remaining < 0:
        return "🟣 Over-assigned"
    if fill_pct < 50:
        return "🔴 Critical"
    elif fill_pct < 75:
        return "🟡 Needs Attention"
    else:
        return "🟢 Good"


def capacity_table(operations, volunteers):
    """
    One row per operation with needed/filled/remaining capacity.

    Operations with no stated need count as fully covered (100%).
    Sorted by remaining capacity, largest gap first.
    """
    snapshots, _ = account_all(operations, volunteers)
    statuses = {op["id"]: op.get("status", "") for op in operations}

    rows = []
    for s in snapshots:
        fill_pct = (s["filled"] / s["needed"] * 100) if s["needed"] > 0 else 100.0
        rows.append({
            "Operation_ID": s["operation_id"],
            "Operation": s["operation_name"],
            "Status": statuses.get(s["operation_id"], ""),
            "Needed": s["needed"],
            "Filled": s["filled"],
            "Remaining": s["remaining"],
            "Fill_Percent": round(fill_pct, 1),
            "Priority": get_priority(s["remaining"], fill_pct),
        })

    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    return df.sort_values(["Remaining", "Operation_ID"], ascending=[False, True]).reset_index(drop=True)


def volunteer_table(volunteers, operations):
    """Listing frame with the resolved operation name alongside each volunteer."""
    df = volunteers_to_frame(volunteers)
    if df.empty:
        return df
    df["matched_operation"] = [operation_display_name(v, operations) for v in volunteers]
    return df


def generate_capacity_report(project_root, operations, volunteers, output_format='csv'):
    """
    Generate the capacity report for every operation.

    Args:
        project_root: Path to project root
        operations: canonical operation list
        volunteers: canonical volunteer list
        output_format: 'csv', 'html', or 'markdown'

    Returns:
        Path to generated report
    """
    health_df = capacity_table(operations, volunteers)

    output_dir = project_root / "output"
    output_dir.mkdir(exist_ok=True)

    if output_format == 'csv':
        output_path = output_dir / "capacity_report.csv"
        health_df.to_csv(output_path, index=False, encoding='utf-8-sig')
    elif output_format == 'markdown':
        output_path = output_dir / "capacity_report.md"
        stats = summarize(volunteers)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("# Operation Capacity Report\n\n")
            f.write(f"Generated: {pd.Timestamp.now().strftime('%Y-%m-%d %H:%M')}\n\n")
            f.write(f"Volunteers: {stats['total']} total, {stats['assigned']} assigned "
                    f"({stats['assigned_percentage']}%), {stats['unassigned']} unassigned\n\n")
            f.write(health_df.to_markdown(index=False))
    elif output_format == 'html':
        output_path = output_dir / "capacity_report.html"
        health_df.to_html(output_path, index=False, classes='table table-striped', encoding='utf-8')
    else:
        raise ValueError(f"Unknown output format: {output_format}")

    logger.info(f"Generated capacity report: {output_path}")
    return output_path


def generate_dashboard(project_root, operations, volunteers):
    """
    Generate HTML dashboard with charts.

    Returns:
        Path to generated dashboard HTML
    """
    health_df = capacity_table(operations, volunteers)
    overview = summarize_overview(operations, volunteers)
    stats = summarize(volunteers)

    charts = {}

    # 1. Top 5 operations by volunteer need
    fig, ax = plt.subplots(figsize=(8, 5))
    top_need = health_df[health_df['Needed'] > 0].sort_values('Needed', ascending=False).head(5)
    ax.bar(top_need['Operation'], top_need['Needed'], color='#7b1fa2')
    ax.set_ylabel('Volunteers Needed')
    ax.set_title('Top 5 Operations by Volunteer Need')
    plt.xticks(rotation=30, ha='right')
    plt.tight_layout()
    charts['top_need'] = _fig_to_base64(fig)
    plt.close(fig)

    # 2. Needed vs filled
    fig, ax = plt.subplots(figsize=(10, 6))
    ax.barh(health_df['Operation'], health_df['Needed'], color='#dddddd', label='Needed')
    ax.barh(health_df['Operation'], health_df['Filled'], color='#17a2b8', label='Filled')
    ax.set_xlabel('Capacity Units')
    ax.set_title('Needed vs Filled Capacity')
    ax.legend()
    plt.tight_layout()
    charts['needed_filled'] = _fig_to_base64(fig)
    plt.close(fig)

    # 3. Assigned team vs individual records
    fig, ax = plt.subplots(figsize=(6, 6))
    type_counts = [overview['assigned_team_records'], overview['assigned_individual_records']]
    if sum(type_counts) > 0:
        ax.pie(type_counts, labels=['Team Leads', 'Individuals'], colors=['#4285f4', '#ea4335'],
               autopct='%1.0f%%', startangle=90)
    else:
        ax.text(0.5, 0.5, 'No data for assigned volunteers.', ha='center', va='center')
        ax.axis('off')
    ax.set_title('Volunteer Type Breakdown')
    charts['type_ratio'] = _fig_to_base64(fig)
    plt.close(fig)

    rows_html = ""
    for _, row in health_df.head(50).iterrows():
        rows_html += f"""
                <tr>
                    <td>{row['Priority']}</td>
                    <td>{row['Operation']}</td>
                    <td>{row['Status']}</td>
                    <td>{row['Needed']}</td>
                    <td>{row['Filled']}</td>
                    <td>{row['Remaining']}</td>
                    <td>{row['Fill_Percent']}%</td>
                </tr>
"""

    html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <title>Relief Volunteer Dashboard</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 20px; background: #f5f5f5; }}
        .container {{ max-width: 1200px; margin: 0 auto; background: white; padding: 20px; border-radius: 8px; }}
        h1 {{ color: #333; border-bottom: 3px solid #7b1fa2; padding-bottom: 10px; }}
        .stats {{ display: flex; gap: 20px; margin: 20px 0; }}
        .stat-box {{ background: #7b1fa2; color: white; padding: 15px; border-radius: 5px; flex: 1; text-align: center; }}
        .chart {{ margin: 20px 0; text-align: center; }}
        .chart img {{ max-width: 100%; border: 1px solid #ddd; border-radius: 5px; }}
        table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
        th, td {{ padding: 10px; text-align: left; border-bottom: 1px solid #ddd; }}
        th {{ background: #7b1fa2; color: white; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>Relief Volunteer Dashboard</h1>
        <p>Generated: {pd.Timestamp.now().strftime('%Y-%m-%d %H:%M')}</p>

        <div class="stats">
            <div class="stat-box"><h3>Operations</h3><p>{overview['total_operations']} ({overview['operations_in_progress']} in progress)</p></div>
            <div class="stat-box"><h3>Capacity Needed</h3><p>{overview['total_needed']}</p></div>
            <div class="stat-box"><h3>Assigned Capacity</h3><p>{overview['total_assigned_capacity']}</p></div>
            <div class="stat-box"><h3>Registered Capacity</h3><p>{overview['total_registered_capacity']}</p></div>
            <div class="stat-box"><h3>Assigned Rate</h3><p>{stats['assigned_percentage']}% of {stats['total']}</p></div>
        </div>

        <div class="chart"><img src="data:image/png;base64,{charts['top_need']}" alt="Top Need"></div>
        <div class="chart"><img src="data:image/png;base64,{charts['needed_filled']}" alt="Needed vs Filled"></div>
        <div class="chart"><img src="data:image/png;base64,{charts['type_ratio']}" alt="Volunteer Types"></div>

        <table>
            <thead>
                <tr>
                    <th>Priority</th><th>Operation</th><th>Status</th><th>Needed</th>
                    <th>Filled</th><th>Remaining</th><th>Fill %</th>
                </tr>
            </thead>
            <tbody>{rows_html}
            </tbody>
        </table>
    </div>
</body>
</html>
"""

    output_dir = project_root / "output"
    output_dir.mkdir(exist_ok=True)
    dashboard_path = output_dir / "dashboard.html"

    with open(dashboard_path, 'w', encoding='utf-8') as f:
        f.write(html_content)

    logger.info(f"Generated dashboard: {dashboard_path}")
    return dashboard_path


def _fig_to_base64(fig):
    """Convert matplotlib figure to base64 string."""
    buf = BytesIO()
    fig.savefig(buf, format='png', dpi=100, bbox_inches='tight')
    buf.seek(0)
    return base64.b64encode(buf.read()).decode('utf-8')
