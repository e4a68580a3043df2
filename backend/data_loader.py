import re
import uuid
import pandas as pd
from pathlib import Path
from fastapi import HTTPException
from typing import Dict, Any, Tuple, List

from config import settings
from state import Row
from utils.data_cleaning import clean_dataframe
from utils.json_sanitize import dataframe_to_rows


# -------------------------------------------------
# Validation
# -------------------------------------------------
def validate_file_name(file_name: str) -> str:
    name = Path(file_name or "").name
    if not name:
        raise HTTPException(status_code=400, detail="File name is required")

    if Path(name).suffix.lower() not in settings.UPLOAD_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {name}. Allowed: {sorted(settings.UPLOAD_EXTENSIONS)}"
        )
    return name


def _source_dir(source_id: str) -> Path:
    if not re.fullmatch(r"[A-Za-z0-9_-]+", source_id or ""):
        raise HTTPException(status_code=400, detail=f"Invalid data source id: {source_id}")
    return settings.DATA_ROOT / source_id


# -------------------------------------------------
# Upload
# -------------------------------------------------
def save_upload(file_name: str, content: bytes) -> str:
    """
    Store an uploaded file as DATA_ROOT/<source_id>/<file_name>.
    Returns the new source id.
    """
    name = validate_file_name(file_name)

    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File exceeds {settings.MAX_UPLOAD_MB} MB")

    stem = re.sub(r"[^A-Za-z0-9]+", "-", Path(name).stem).strip("-").lower() or "source"
    source_id = f"{stem[:40]}-{uuid.uuid4().hex[:8]}"

    source_dir = _source_dir(source_id)
    source_dir.mkdir(parents=True, exist_ok=True)
    (source_dir / name).write_bytes(content)

    print(f"[DataLoader] Stored {name} as {source_id}")
    return source_id


# -------------------------------------------------
# Find data files
# -------------------------------------------------
def find_source_file(source_id: str) -> Path:
    """
    Finds the data file inside a source folder.
    """
    source_dir = _source_dir(source_id)

    if not source_dir.exists():
        raise HTTPException(
            status_code=404,
            detail=f"Data source not found: {source_id}"
        )

    files = [
        f for f in source_dir.iterdir()
        if f.is_file() and f.suffix.lower() in settings.UPLOAD_EXTENSIONS
    ]

    if len(files) == 0:
        raise HTTPException(
            status_code=404,
            detail="No data file found in source folder"
        )

    return files[0]


def list_data_sources() -> List[Dict[str, Any]]:
    base_dir = settings.DATA_ROOT

    if not base_dir.exists():
        return []

    results = []
    for source_dir in sorted(base_dir.iterdir()):
        if not source_dir.is_dir():
            continue

        for f in source_dir.iterdir():
            if f.is_file() and f.suffix.lower() in settings.UPLOAD_EXTENSIONS:
                results.append({
                    "source_id": source_dir.name,
                    "file_name": f.name,
                    "name": f.stem,
                    "size_bytes": f.stat().st_size,
                })
                break

    return results


# -------------------------------------------------
# Extract rows
# -------------------------------------------------
def read_dataframe(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            df = pd.read_csv(path)
        elif suffix == ".xls":
            df = pd.read_excel(path, engine="xlrd")
        else:
            df = pd.read_excel(path, engine=settings.EXCEL_ENGINE)
    except (ValueError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise HTTPException(status_code=400, detail=f"Could not read {path.name}: {e}")

    if len(df.columns) > settings.MAX_COLUMNS:
        df = df.iloc[:, :settings.MAX_COLUMNS]

    return df.head(settings.MAX_ROWS)


def load_rows(source_id: str) -> Tuple[List[Row], List[str], str]:
    """
    Load a data source as cleaned rows.
    Returns (rows, columns, name).
    """
    path = find_source_file(source_id)
    df = clean_dataframe(read_dataframe(path))
    return dataframe_to_rows(df), [str(c) for c in df.columns], path.stem


# -------------------------------------------------
# Convert rows -> API response
# -------------------------------------------------
def rows_to_response(rows: List[Row], columns: List[str], name: str, limit: int = None) -> Dict[str, Any]:
    """
    Preview payload for the data-source page
    """
    if limit is None:
        limit = settings.PREVIEW_ROWS
    limit = max(limit, 0)
    return {
        "name": name,
        "columns": columns,
        "rows": rows[:limit],
        "row_count": len(rows)
    }


# -------------------------------------------------
# Source summaries for the assistant
# -------------------------------------------------
def describe_sources(source_ids: List[str] = None, sample_rows: int = 5) -> List[Dict[str, Any]]:
    """
    {name, columns, sample} per source; name is the source id so that
    suggestions can be traced back to a folder.
    """
    if source_ids is None:
        source_ids = [s["source_id"] for s in list_data_sources()]

    described = []
    for source_id in source_ids:
        rows, columns, _ = load_rows(source_id)
        described.append({
            "name": source_id,
            "columns": columns,
            "sample": rows[:sample_rows],
        })
    return described
