"""Export sink: turn flat records into a downloadable file."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from ..core.constants import EXPORT_SHEET_NAME

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIMETYPE = "text/csv"


@dataclass(frozen=True)
class ExportFormat:
    extension: str
    mimetype: str


FORMATS = {
    "xlsx": ExportFormat(extension="xlsx", mimetype=XLSX_MIMETYPE),
    "csv": ExportFormat(extension="csv", mimetype=CSV_MIMETYPE),
}


def write_xlsx(records: Sequence[dict], *, sheet_name: str = EXPORT_SHEET_NAME) -> bytes:
    df = pd.DataFrame(list(records))

    # Write into memory, never to disk.
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()


def write_csv(records: Sequence[dict]) -> bytes:
    df = pd.DataFrame(list(records))
    # BOM so spreadsheet apps detect UTF-8 names.
    return df.to_csv(index=False).encode("utf-8-sig")


def write_records(records: Sequence[dict], fmt: str) -> bytes:
    if fmt == "csv":
        return write_csv(records)
    return write_xlsx(records)
