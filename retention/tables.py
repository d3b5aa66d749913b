"""
retention/tables.py

CSV table loader.

Each table arrives as one complete block of CSV text. The first line is the
header; every following non-blank line is one row. pandas infers column
types, so numeric columns come back as numbers and everything else as
strings.

TableRepository parses a table the first time it is asked for and hands back
the same DataFrame on every later call. There is no refresh: the tables are
treated as read-only for the life of the process, so callers must filter
into new frames rather than modify the ones they get back.
"""

from __future__ import annotations

import csv
import io
import logging
import threading
import time
from pathlib import Path
from typing import Dict, List, Mapping, Union

import pandas as pd

from retention.config import DATA_DIR
from retention.data_dictionary import DATA_DICTIONARY, TABLE_FILES
from retention.errors import MissingTableError, TableParseError

logger = logging.getLogger(__name__)


def check_row_widths(name: str, text: str) -> None:
    """Raise TableParseError unless every non-blank row has as many fields as the header."""
    reader = csv.reader(io.StringIO(text), skipinitialspace=True)
    width = None
    try:
        for row in reader:
            if not any(field.strip() for field in row):
                continue
            if width is None:
                width = len(row)
            elif len(row) != width:
                raise TableParseError(
                    name, f"line {reader.line_num} has {len(row)} fields, header has {width}"
                )
    except csv.Error as e:
        raise TableParseError(name, str(e)) from e


def parse_table(name: str, text: str) -> pd.DataFrame:
    """
    Parse one table's CSV text into a DataFrame.

    Raises
    ------
    MissingTableError
        If ``name`` is not one of the known tables.
    TableParseError
        If the text is empty, any row has more or fewer fields than the
        header, or the header lacks a required column.
    """
    if name not in DATA_DICTIONARY:
        raise MissingTableError(name)

    if not text or not text.strip():
        raise TableParseError(name, "source text is empty")

    check_row_widths(name, text)

    try:
        # Only empty fields are missing; strings such as "NA" or "None" stay text.
        df = pd.read_csv(
            io.StringIO(text),
            skip_blank_lines=True,
            skipinitialspace=True,
            index_col=False,
            keep_default_na=False,
            na_values=[""],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise TableParseError(name, str(e)) from e

    df.columns = [str(c).strip() for c in df.columns]

    required = list(DATA_DICTIONARY[name])
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise TableParseError(name, f"missing required columns: {missing}")

    extra = [c for c in df.columns if c not in required]
    if extra:
        logger.warning("Table '%s' has extra columns %s; keeping them", name, extra)

    logger.info("Parsed table '%s': %d rows, %d columns", name, len(df), len(df.columns))
    return df


class TableRepository:
    """
    Load-once store for the nine source tables.

    Built once at start-up and passed to whatever needs the tables. The raw
    text for every table is held from construction; parsing happens lazily
    on first access and the result is cached for the repository's lifetime.
    """

    def __init__(self, sources: Mapping[str, str]):
        self._sources: Dict[str, str] = dict(sources)
        self._tables: Dict[str, pd.DataFrame] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_directory(cls, data_dir: Union[str, Path] = DATA_DIR) -> "TableRepository":
        """
        Read all nine table files from ``data_dir``.

        Raises MissingTableError if any file is absent.
        """
        data_dir = Path(data_dir)
        sources = {}
        for name, filename in TABLE_FILES.items():
            path = data_dir / filename
            if not path.exists():
                logger.error("Table file not found: %s", path)
                raise MissingTableError(name)
            sources[name] = path.read_text(encoding="utf-8")

        logger.info("Read %d table sources from %s", len(sources), data_dir)
        return cls(sources)

    def table(self, name: str) -> pd.DataFrame:
        df = self._tables.get(name)
        if df is not None:
            return df

        with self._lock:
            # Another thread may have finished the parse while we waited.
            df = self._tables.get(name)
            if df is None:
                if name not in self._sources:
                    raise MissingTableError(name)
                df = parse_table(name, self._sources[name])
                self._tables[name] = df
        return df

    def is_loaded(self, name: str) -> bool:
        return name in self._tables

    def loaded_tables(self) -> List[str]:
        return [name for name in TABLE_FILES if name in self._tables]

    def preload(self) -> None:
        """Parse every table now instead of on first request."""
        start = time.perf_counter()
        for name in TABLE_FILES:
            self.table(name)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("All tables preloaded in %d ms", round(elapsed_ms))

    def students(self) -> pd.DataFrame:
        return self.table("students")

    def attendance(self) -> pd.DataFrame:
        return self.table("attendance")

    def courses(self) -> pd.DataFrame:
        return self.table("courses")

    def enrollments(self) -> pd.DataFrame:
        return self.table("enrollments")

    def enrollment_grades(self) -> pd.DataFrame:
        return self.table("enrollment_grades")

    def financial_aid(self) -> pd.DataFrame:
        return self.table("financial_aid")

    def lms_events(self) -> pd.DataFrame:
        return self.table("lms_events")

    def term_gpas(self) -> pd.DataFrame:
        return self.table("term_gpas")

    def advising_notes(self) -> pd.DataFrame:
        return self.table("advising_notes")
