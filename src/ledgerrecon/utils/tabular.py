"""Readers that turn delimited text and spreadsheets into rows of cells."""

import csv
import io
from datetime import date
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

DELIMITED_EXTENSIONS = {".csv", ".txt", ".tsv"}
SPREADSHEET_EXTENSIONS = {".xlsx", ".xlsm"}

Row = list[Any]


def read_rows(file_path: str | Path) -> list[Row]:
    """Read a file into a list of rows.

    Delimited text yields string cells. Spreadsheets yield strings, with date
    cells kept as date objects so no timezone conversion happens.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the extension is not supported
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    suffix = path.suffix.lower()
    if suffix in SPREADSHEET_EXTENSIONS:
        return read_spreadsheet_rows(path)
    if suffix in DELIMITED_EXTENSIONS or suffix == "":
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            return read_text_rows(f.read())
    raise ValueError(f"Unsupported file type '{suffix}'")


def read_text_rows(content: str) -> list[Row]:
    """Split delimited text into rows, sniffing the delimiter."""
    if content.startswith("﻿"):
        content = content[1:]
    if not content.strip():
        return []

    sample = content[:4096]
    try:
        delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.reader(io.StringIO(content), delimiter=delimiter)
    return [list(row) for row in reader]


def read_spreadsheet_rows(path: Path) -> list[Row]:
    """Read the first worksheet of a workbook."""
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        if not workbook.sheetnames:
            return []
        sheet = workbook[workbook.sheetnames[0]]
        return [[_cell_value(cell) for cell in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, date):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
