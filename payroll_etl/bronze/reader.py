# payroll_etl/bronze/reader.py
"""
Ingestion Reader - stream typed records out of comma-delimited source files.

The expected layout of a file is taken from the SQLAlchemy model of the
table it is loaded into: column order, type and maximum string length.
Files are read lazily in chunks; every call to ``read_source`` opens the
file again, so re-reading yields the same sequence.
"""

import csv
import logging
import os
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import pandas as pd
from sqlalchemy import Column, Date, Float, Integer, String

from payroll_etl.bronze.utils import (
    clean_string_column,
    clean_numeric_column,
    clean_integer_column,
    clean_date_column,
)
from payroll_etl.common.exceptions import MalformedRecordError, SourceUnavailableError

logger = logging.getLogger(__name__)

MALFORMED_POLICIES = ("abort", "skip")
SOURCE_ENCODING = "utf-8-sig"


@dataclass
class ReadStats:
    """Counters for a single pass over a source file."""
    rows_read: int = 0
    rows_skipped: int = 0


def schema_columns(table_class) -> List[Column]:
    """Columns of the destination table, in source file order."""
    return list(table_class.__table__.columns)


def ensure_source_available(file_path: str) -> None:
    """Raise SourceUnavailableError unless ``file_path`` is a readable file."""
    if not os.path.isfile(file_path):
        raise SourceUnavailableError(f"Source file not found: {file_path}", source=file_path)
    if not os.access(file_path, os.R_OK):
        raise SourceUnavailableError(f"Source file is not readable: {file_path}", source=file_path)


def coerce_column(series: pd.Series, column: Column) -> Tuple[pd.Series, pd.Series]:
    """
    Convert raw strings to the column's type.

    Returns:
        (typed series, mask of rows whose value violates the column: present
        but invalid for the type or too long, or missing from a NOT NULL column)
    """
    col_type = column.type
    present = clean_string_column(series).notna()
    missing_required = pd.Series(False, index=series.index) if column.nullable else ~present

    if isinstance(col_type, Integer):
        typed = clean_integer_column(series)
        invalid = present & typed.isna()
    elif isinstance(col_type, Float):
        typed = clean_numeric_column(series, default_value=None)
        invalid = present & typed.isna()
    elif isinstance(col_type, Date):
        parsed = clean_date_column(series)
        typed = parsed.dt.date
        invalid = present & parsed.isna()
    else:
        typed = clean_string_column(series)
        length = getattr(col_type, "length", None) if isinstance(col_type, String) else None
        invalid = present & (typed.str.len().fillna(0) > length) if length else pd.Series(False, index=series.index)

    return typed, invalid | missing_required


def _describe_violation(column: Column, value: str) -> str:
    col_type = column.type
    if clean_string_column(pd.Series([value])).isna().all():
        return f"missing value for required column {column.name}"
    if isinstance(col_type, String) and getattr(col_type, "length", None):
        return f"value {value!r} exceeds {column.name} max length {col_type.length}"
    return f"value {value!r} is not a valid {col_type.__class__.__name__.lower()} for {column.name}"


class _SourceFile:
    """One pass over a source file with a malformed-record policy."""

    def __init__(self, file_path: str, columns: List[Column], on_malformed: str, stats: ReadStats):
        self.file_path = file_path
        self.file_name = os.path.basename(file_path)
        self.columns = columns
        self.field_names = [c.name for c in columns]
        self.on_malformed = on_malformed
        self.stats = stats

    def reject(self, line_number: int, reason: str) -> None:
        if self.on_malformed == "abort":
            raise MalformedRecordError(
                f"Malformed record in {self.file_name} at line {line_number}: {reason}",
                file_path=self.file_path,
                line_number=line_number,
            )
        self.stats.rows_skipped += 1
        logger.warning(f"Skipping malformed record in {self.file_name} at line {line_number}: {reason}")

    def check_header(self, header: List[str]) -> None:
        names = [h.strip().strip('"').lower() for h in header]
        expected = [n.lower() for n in self.field_names]
        if names != expected:
            logger.warning(
                f"Header of {self.file_name} does not match schema "
                f"(expected {self.field_names}, found {header}); reading by position"
            )

    def rows(self) -> Iterator[Tuple[int, List[str]]]:
        """Yield (line number, fields) for every data row, skipping the header."""
        try:
            with open(self.file_path, newline="", encoding=SOURCE_ENCODING) as handle:
                reader = csv.reader(handle)
                header = next(reader, None)
                if header is None:
                    logger.warning(f"{self.file_name} is empty")
                    return
                self.check_header(header)

                for row in reader:
                    if not row:
                        continue
                    yield reader.line_num, row
        except OSError as e:
            raise SourceUnavailableError(
                f"Cannot read source file {self.file_name}: {e}",
                source=self.file_path,
                original_error=e,
            ) from e
        except UnicodeDecodeError as e:
            raise SourceUnavailableError(
                f"Source file {self.file_name} is not valid {SOURCE_ENCODING}: {e}",
                source=self.file_path,
                original_error=e,
            ) from e
        except csv.Error as e:
            raise MalformedRecordError(
                f"Cannot parse {self.file_name}: {e}",
                file_path=self.file_path,
                original_error=e,
            ) from e

    def type_chunk(self, rows: List[List[str]], line_numbers: List[int]) -> pd.DataFrame:
        """Type a chunk of rows, rejecting rows that violate a column type."""
        raw = pd.DataFrame(rows, columns=self.field_names, dtype=object)
        typed = {}
        invalid = pd.Series(False, index=raw.index)
        first_violation = {}

        for column in self.columns:
            values, bad = coerce_column(raw[column.name], column)
            typed[column.name] = values
            for idx in raw.index[bad & ~invalid]:
                first_violation[idx] = _describe_violation(column, raw.at[idx, column.name])
            invalid |= bad

        for idx in sorted(first_violation):
            self.reject(line_numbers[idx], first_violation[idx])

        df = pd.DataFrame(typed)
        return df[~invalid].reset_index(drop=True)

    def chunks(self, chunk_size: int) -> Iterator[pd.DataFrame]:
        rows: List[List[str]] = []
        line_numbers: List[int] = []
        expected = len(self.field_names)

        for line_number, row in self.rows():
            self.stats.rows_read += 1
            if len(row) != expected:
                if self.on_malformed == "abort" and rows:
                    # Earlier lines in the pending chunk are reported first
                    self.type_chunk(rows, line_numbers)
                self.reject(line_number, f"expected {expected} fields, found {len(row)}")
                continue
            rows.append(row)
            line_numbers.append(line_number)

            if len(rows) >= chunk_size:
                chunk = self.type_chunk(rows, line_numbers)
                rows, line_numbers = [], []
                if not chunk.empty:
                    yield chunk

        if rows:
            chunk = self.type_chunk(rows, line_numbers)
            if not chunk.empty:
                yield chunk


def read_source(
    file_path: str,
    table_class,
    chunk_size: int = 1000,
    on_malformed: str = "abort",
    stats: Optional[ReadStats] = None,
) -> Iterator[pd.DataFrame]:
    """
    Read a comma-delimited source file as typed DataFrame chunks.

    Args:
        file_path: Path to the CSV file (header row required)
        table_class: Model of the destination table, defines the schema
        chunk_size: Rows per yielded DataFrame
        on_malformed: "abort" raises on the first malformed row,
            "skip" drops and logs it
        stats: Optional counters updated while the iterator is consumed

    Returns:
        Lazy iterator of DataFrames with one column per schema field

    Raises:
        SourceUnavailableError: If the file is missing or unreadable (raised
            immediately, before iteration starts)
        MalformedRecordError: On a malformed row under the "abort" policy
            (raised during iteration)
    """
    if on_malformed not in MALFORMED_POLICIES:
        raise ValueError(f"on_malformed must be one of {MALFORMED_POLICIES}, got {on_malformed!r}")
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")

    ensure_source_available(file_path)
    source = _SourceFile(file_path, schema_columns(table_class), on_malformed, stats or ReadStats())
    return source.chunks(chunk_size)
