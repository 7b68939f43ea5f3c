"""
Tabular sample extraction for the classifier.

Given an uploaded CSV/TSV file, parse a bounded preview (header row plus at
most N data rows) and derive:
- a placeholder schema: {"name": <file name>, "fields": [{"name", "type": "unknown"}]}
- the preview rows re-serialized with the file's own delimiter

Column types are never inferred; every field is typed "unknown" and every
cell is kept as text.
"""

from typing import List, Optional
import csv
import io
import json
import logging

import pandas as pd

from .schemas import FieldSpec, SampleExtraction

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_ROWS = 5
SNIFF_DELIMITERS = ",\t;|"
SNIFF_CHARS = 4096


class TabularParseError(ValueError):
    """The uploaded file could not be parsed as a delimited table."""


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise TabularParseError(f"file is not valid UTF-8 text ({e.reason})") from e


def _sniff_delimiter(text: str, filename: str = "") -> str:
    """ Guess the field delimiter from the head of the file; fall back on the extension. """
    fallback = "\t" if filename.lower().endswith((".tsv", ".tab")) else ","
    head = text[:SNIFF_CHARS]
    # Sniff only complete lines
    if "\n" in head:
        head = head[: head.rfind("\n")]
    try:
        return csv.Sniffer().sniff(head, delimiters=SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return fallback


def _schema_text(filename: str, fields: List[FieldSpec]) -> str:
    return json.dumps(
        {"name": filename, "fields": [f.model_dump() for f in fields]},
        indent=2,
        ensure_ascii=False,
    )


def _header_width(text: str, sep: str) -> int:
    """ Number of fields in the header row (first non-blank line). """
    for row in csv.reader(io.StringIO(text), delimiter=sep):
        if row:
            return len(row)
    return 0


def extract_sample(filename: str, data: bytes, preview_rows: Optional[int] = None) -> SampleExtraction:
    """Parse the first `preview_rows` data rows of an uploaded file.

    Rows are read against the header: surplus fields (trailing delimiters,
    ragged rows) are dropped and missing ones come back empty, so every value
    stays under its own column.

    Raises TabularParseError with a human-readable description on failure.
    """
    n = DEFAULT_PREVIEW_ROWS if preview_rows is None else preview_rows
    text = _decode(data)
    if not text.strip():
        raise TabularParseError("file is empty")

    sep = _sniff_delimiter(text, filename)
    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=sep,
            nrows=n,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            usecols=list(range(_header_width(text, sep))),
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error) as e:
        raise TabularParseError(str(e).strip()) from e

    df = df.fillna("")
    fields = [FieldSpec(name=str(col)) for col in df.columns]
    sample_text = df.to_csv(index=False, sep=sep, lineterminator="\n").rstrip("\n")

    logger.info("Extracted %d field(s), %d row(s) from %s", len(fields), len(df), filename)
    return SampleExtraction(
        schema_text=_schema_text(filename, fields),
        sample_text=sample_text,
        fields=fields,
        rows=len(df),
    )
