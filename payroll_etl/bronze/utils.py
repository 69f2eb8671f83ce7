# payroll_etl/bronze/utils.py
"""
Value cleaning shared by the reader and the aggregator.

Source extracts mark missing values in several ways ("", "N/A", "NULL",
"-", ...). Every helper maps those to null before parsing.
"""

import re

import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")

# Placeholder values that should be treated as null
NULL_PLACEHOLDERS = frozenset([
    'NULL', 'Null', 'null', '[NULL]', '[null]', 'None', 'none',
    'N/A', 'n/a', 'NA', 'na', 'NaN', 'nan', '<NA>', 'NaT',
    '', '-', '--', 'undefined',
])


def clean_string_column(series: pd.Series, default_value: str = None) -> pd.Series:
    """
    Trim whitespace and surrounding quotes; null placeholders become <NA>
    (or ``default_value`` when given).
    """
    text = series.astype(str).str.strip().str.strip('"\'').str.strip()
    result = text.astype(object).mask(text.isin(NULL_PLACEHOLDERS), pd.NA)

    if default_value is not None:
        result = result.fillna(default_value)
    return result


def clean_numeric_column(series: pd.Series, default_value: float = 0.0) -> pd.Series:
    """
    Parse a column as float.

    Args:
        series: Raw or already-typed values
        default_value: Replacement for missing and unparseable values;
            None keeps them as NaN

    Returns:
        float64 Series
    """
    parsed = pd.to_numeric(clean_string_column(series), errors="coerce").astype(float)
    return parsed if default_value is None else parsed.fillna(default_value)


def _whole_float_as_text(value):
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return value


def clean_integer_column(series: pd.Series) -> pd.Series:
    """
    Parse a column as nullable Int64.

    Text must be an optionally signed run of ASCII digits: "2021" parses,
    "2021.0" and "2.021e3" do not. Numeric values (a nullable integer column
    read back from the database arrives as float) must be whole. Anything
    else becomes <NA>.
    """
    if is_numeric_dtype(series) and not is_bool_dtype(series):
        numeric = series.astype(float)
        return numeric.where(numeric % 1 == 0).astype("Int64")

    text = clean_string_column(series.map(_whole_float_as_text))
    valid = text.str.fullmatch(INTEGER_TEXT.pattern).fillna(False).astype(bool)
    return pd.to_numeric(text.where(valid), errors="coerce").astype("Int64")


def clean_date_column(series: pd.Series) -> pd.Series:
    """Parse dates written as 07/31/1995 or 1995-07-31; anything else becomes NaT."""
    return pd.to_datetime(clean_string_column(series), errors="coerce", format="mixed")
