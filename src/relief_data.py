"""
File-based snapshot loading and saving for operations and volunteers.
"""
import json
import shutil
import logging
from datetime import date, datetime
from pathlib import Path

import pandas as pd

from volunteer_normalizer import normalize_operations, normalize_volunteers

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = [".csv", ".xlsx", ".xls", ".json"]
JSON_WRAPPER_KEYS = ["items", "data", "operations", "volunteers"]
LIST_COLUMNS = ["roles", "languages", "availableTime", "available_time"]


def _split_list_cell(value):
    if not isinstance(value, str):
        return value
    sep = ";" if ";" in value else ","
    return [part.strip() for part in value.split(sep) if part.strip()]


def load_records(path: Path) -> list:
    """Load raw records from a CSV, Excel, or JSON file."""
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported file type: {path.name}")

    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        if isinstance(payload, dict):
            for key in JSON_WRAPPER_KEYS:
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break
        if not isinstance(payload, list):
            raise ValueError(f"{path.name} does not contain a list of records")
        # Older saves flattened list fields to "a;b" strings
        records = []
        for record in payload:
            if isinstance(record, dict):
                record = {k: _split_list_cell(v) if k in LIST_COLUMNS else v
                          for k, v in record.items()}
            records.append(record)
        logger.info(f"Loaded {len(records)} records from {path.name}")
        return records

    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    else:
        df = pd.read_excel(path, dtype=str).fillna("")

    for col in LIST_COLUMNS:
        if col in df.columns:
            df[col] = df[col].map(_split_list_cell)

    logger.info(f"Loaded {len(df)} rows from {path.name}")
    return df.to_dict("records")


def find_input_file(input_dir: Path, stem):
    for suffix in SUPPORTED_SUFFIXES:
        candidate = input_dir / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    raise FileNotFoundError(f"No {stem} file (csv/xlsx/json) found in {input_dir}")


def load_snapshot(input_dir: Path):
    """
    Load and normalize the operation and volunteer collections.

    Returns: (operations, volunteers)
    """
    operations = normalize_operations(load_records(find_input_file(input_dir, "operations")))
    volunteers = normalize_volunteers(load_records(find_input_file(input_dir, "volunteers")))
    logger.info(f"Snapshot: {len(operations)} operations, {len(volunteers)} volunteers")
    return operations, volunteers


def _serialize(value, as_json=False):
    if isinstance(value, (set, frozenset)):
        return sorted(value) if as_json else ";".join(sorted(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None:
        return ""
    return value


def volunteers_to_frame(volunteers):
    return pd.DataFrame([{k: _serialize(v) for k, v in vol.items()} for vol in volunteers])


def save_volunteers(volunteers, path: Path):
    """Write a volunteer snapshot back as CSV or JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".json":
        rows = [{k: _serialize(v, as_json=True) for k, v in vol.items()} for vol in volunteers]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)
    else:
        volunteers_to_frame(volunteers).to_csv(path, index=False)
    logger.info(f"Saved {len(volunteers)} volunteers to {path}")
    return path


def archive_existing(paths, archive_dir: Path):
    """Move existing files to archive_dir with a timestamp suffix."""
    archived = []
    for path in paths:
        if not path.exists():
            continue
        archive_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        archive_path = archive_dir / f"{path.stem}_{timestamp}{path.suffix}"
        shutil.move(str(path), str(archive_path))
        logger.info(f"Archived {path} to {archive_path}")
        archived.append(archive_path)
    return archived
