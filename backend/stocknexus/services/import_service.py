# Overview: Service-layer operations for bulk inventory import from CSV / Excel uploads.

"""
Bulk Inventory Import

Flow:
1. parse_upload(): CSV (csv.DictReader) or Excel (.xlsx via openpyxl) into
   a list of raw row dicts.
2. normalize_rows(): header names are lower-cased; aliases are folded into
   column names; rows missing name or department are skipped.
3. import_items(): every remaining row goes through the same validation as a
   single create, then bulk_create_items() writes them all-or-nothing (each
   row authorized and reconciled).

Column rules:
- required header columns: name, department, quantity
- quantity: unparsable -> 1
- low_stock_threshold (aliases lowstockthreshold, threshold): unparsable -> 5
- serial_number (alias serialnumber), cabin_number (alias cabinnumber)
- specifications (alias specs): JSON object text; anything else -> {}
- an unknown department rejects the whole file
"""

from __future__ import annotations

import csv
import io
import json

from ..constants import DEFAULT_LOW_STOCK_THRESHOLD, Department
from ..models import InventoryItem
from ..policies import CallerContext
from ..validation import ModelValidationPolicy, ValidationError, enforce_rules_inventory_item, validate_payload
from .inventory_service import bulk_create_items


class InventoryImportError(Exception):
    """Raised when an upload cannot be imported."""
    pass


REQUIRED_COLUMNS = ("name", "department", "quantity")

COLUMN_ALIASES = {
    "serialnumber": "serial_number",
    "lowstockthreshold": "low_stock_threshold",
    "threshold": "low_stock_threshold",
    "cabinnumber": "cabin_number",
    "specs": "specifications",
}

TEXT_COLUMNS = ("name", "category", "model", "serial_number", "department", "location", "cabin_number", "status")

IMPORT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "category",
        "model",
        "serial_number",
        "quantity",
        "low_stock_threshold",
        "department",
        "location",
        "cabin_number",
        "specifications",
        "status",
    },
    required_on_create={"name", "department", "quantity"},
)

EXCEL_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_upload(filename: str, stream) -> list[dict]:
    """Read an uploaded CSV or Excel file into raw row dicts."""
    ext = (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""

    if ext == "csv":
        try:
            text = stream.read().decode("utf-8-sig")
        except UnicodeDecodeError:
            raise InventoryImportError("CSV file must be UTF-8 encoded")
        return [dict(row) for row in csv.DictReader(io.StringIO(text))]

    if ext in EXCEL_EXTENSIONS:
        from openpyxl import load_workbook

        try:
            wb = load_workbook(stream, read_only=True, data_only=True)
        except Exception as exc:
            raise InventoryImportError(f"Could not read Excel file: {exc}")
        sheet = wb.active
        data = list(sheet.values)
        wb.close()
        if not data:
            return []
        headers = [_cell_text(h) for h in data[0]]
        return [
            {headers[i]: row[i] for i in range(min(len(headers), len(row)))}
            for row in data[1:]
            if row and any(cell is not None for cell in row)
        ]

    raise InventoryImportError("Unsupported file format; upload a .csv or .xlsx file")


def _parse_int(value, default: int) -> int:
    text = _cell_text(value)
    try:
        return int(text)
    except ValueError:
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            return default


def _parse_specifications(value) -> dict:
    if isinstance(value, dict):
        return value
    text = _cell_text(value)
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _normalize_keys(row: dict) -> dict:
    normalized = {}
    for key, value in row.items():
        if key is None:
            continue
        name = str(key).strip().lower()
        name = COLUMN_ALIASES.get(name, name)
        # First occurrence wins when a column and its alias both appear
        if name not in normalized or normalized[name] in (None, ""):
            normalized[name] = value
    return normalized


def normalize_rows(raw_rows: list[dict]) -> tuple[list[dict], int]:
    """
    Map raw rows to InventoryItem payloads.

    Returns (rows, skipped_count).
    """
    if not raw_rows:
        raise InventoryImportError("File contains no rows")

    header = {COLUMN_ALIASES.get(str(k).strip().lower(), str(k).strip().lower()) for k in raw_rows[0].keys() if k}
    missing = [col for col in REQUIRED_COLUMNS if col not in header]
    if missing:
        raise InventoryImportError(f"Missing required columns: {', '.join(missing)}")

    rows = []
    skipped = 0
    for raw in raw_rows:
        values = _normalize_keys(raw)

        item = {}
        for col in TEXT_COLUMNS:
            text = _cell_text(values.get(col))
            if text:
                item[col] = text

        if not item.get("name") or not item.get("department"):
            skipped += 1
            continue

        if item["department"] not in Department.ALL:
            raise InventoryImportError(
                f"Unknown department {item['department']!r} for item {item['name']!r}"
            )

        item["quantity"] = _parse_int(values.get("quantity"), 1)
        item["low_stock_threshold"] = _parse_int(values.get("low_stock_threshold"), DEFAULT_LOW_STOCK_THRESHOLD)
        item["specifications"] = _parse_specifications(values.get("specifications"))
        rows.append(item)

    return rows, skipped


def import_items(caller: CallerContext, filename: str, stream) -> dict:
    """Parse, validate and create every item in an upload."""
    rows, skipped = normalize_rows(parse_upload(filename, stream))
    if not rows:
        raise InventoryImportError("No valid items found in file")

    patches = []
    for index, row in enumerate(rows, start=1):
        try:
            patch = validate_payload(model=InventoryItem, payload=row, policy=IMPORT_POLICY, partial=False)
            enforce_rules_inventory_item(patch)
        except ValidationError as exc:
            raise InventoryImportError(f"Row {index}: {exc}")
        patches.append(patch)

    created = bulk_create_items(caller, patches)
    return {
        "created": len(created),
        "skipped": skipped,
        "items": [item.to_dict() for item in created],
    }
