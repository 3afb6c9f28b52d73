"""CSV output files."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

import pandas as pd

from ..config.settings import settings
from ..exceptions import InternalInvariantError, OutputError

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^\w.-]")


def output_file_name(container_name: str) -> str:
    """File name for a container's CSV, with characters unsafe in file names replaced."""
    return _UNSAFE.sub("_", container_name) + ".csv"


class CsvWriter:
    """Writes a header and appends rows to one CSV file.

    Args:
        path: Target CSV file
        field_names: Column headers
        append: Keep an existing file and only add rows to it
    """

    def __init__(self, path: Path, field_names: list[str], append: bool = False) -> None:
        self.path = Path(path)
        self.field_names = field_names
        self.append = append
        self.rows_written = 0

    def _to_csv(self, frame: pd.DataFrame, mode: str, header: bool) -> None:
        try:
            frame.to_csv(
                self.path,
                mode=mode,
                header=header,
                index=False,
                na_rep="",
                sep=settings.csv_delimiter,
                encoding=settings.output_encoding,
                lineterminator="\n",
            )
        except OSError as e:
            raise OutputError(f"Unable to write {self.path}: {e}")

    def open(self) -> None:
        """Create the file and write the header, unless appending to a non-empty file."""
        if self.append and self.path.exists() and self.path.stat().st_size > 0:
            logger.info("Appending to %s", self.path)
            return
        logger.info("Writing %s with %d column(s)", self.path, len(self.field_names))
        if self.field_names:
            self._to_csv(pd.DataFrame(columns=self.field_names), mode="w", header=True)
        else:
            try:
                self.path.write_text("", encoding=settings.output_encoding)
            except OSError as e:
                raise OutputError(f"Unable to write {self.path}: {e}")

    def write_rows(self, rows: Iterable[list[str | None]]) -> int:
        rows = list(rows)
        if not rows:
            return 0
        width = len(self.field_names)
        for row in rows:
            if len(row) != width:
                raise InternalInvariantError(
                    f"Row with {len(row)} value(s) does not match the {width} column(s) of {self.path.name}"
                )
        if width:
            self._to_csv(pd.DataFrame(rows, columns=self.field_names, dtype=object), mode="a", header=False)
        self.rows_written += len(rows)
        return len(rows)
