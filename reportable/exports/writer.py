# reportable/exports/writer.py
"""CSV sink for export rows."""

from typing import Any, Dict, List, Mapping, Optional, TextIO

import pandas as pd


class CsvWriter:
    """
    Appends batches of row mappings to an open text file as CSV.

    The header comes from the first row written: its keys fix the column order
    for the whole file and are labelled through ``header_map`` (raw column name
    when unmapped).
    """

    def __init__(self, handle: TextIO, header_map: Optional[Mapping[str, str]] = None):
        self.handle = handle
        self.header_map = dict(header_map or {})
        self.columns: Optional[List[str]] = None
        self.rows_written = 0

    def headers(self) -> List[str]:
        return [self.header_map.get(column, column) for column in self.columns or []]

    def write_rows(self, rows: List[Dict[str, Any]]) -> int:
        """Write a batch; returns how many data rows were written."""
        if not rows:
            return 0

        header: Any = False
        if self.columns is None:
            self.columns = list(rows[0].keys())
            header = self.headers()

        # object dtype keeps ints with gaps as ints and writes None as an empty field
        frame = pd.DataFrame(
            [[row.get(column) for column in self.columns] for row in rows],
            columns=self.columns,
            dtype=object,
        )
        frame.to_csv(self.handle, header=header, index=False, lineterminator="\n")
        self.rows_written += len(rows)
        return len(rows)
