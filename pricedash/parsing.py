from __future__ import annotations

import logging
import re
from typing import Dict, List

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")


class CsvReadError(ValueError):
    """Raised when an uploaded file cannot be read as CSV text."""


def decode_upload(content: bytes) -> str:
    if not content:
        raise CsvReadError("Erro ao ler o arquivo.")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("Upload is not valid UTF-8, decoding as Latin-1")
        return content.decode("latin-1")


def _clean_field(value: str) -> str:
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value.strip()


def _split_line(line: str) -> List[str]:
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Parse delimited text into one dict per data line, keyed by header name.

    The header line is split on every comma. Data lines honour double quotes
    so ``"1,6"`` stays a single field. Blank lines are skipped and fields past
    the last header are dropped.
    """
    if not text:
        return []
    lines = _LINE_SPLIT.split(text)
    headers = [h.strip() for h in lines[0].split(",")]

    rows: List[Dict[str, str]] = []
    for line in lines[1:]:
        if not line.strip():
            continue
        row: Dict[str, str] = {}
        for idx, value in enumerate(_split_line(line)):
            if idx >= len(headers):
                break
            row[headers[idx]] = _clean_field(value)
        if row:
            rows.append(row)
    logger.debug("Parsed %d rows with %d columns", len(rows), len(headers))
    return rows


def read_csv_records(content: bytes) -> List[Dict[str, str]]:
    text = decode_upload(content)
    if not text.strip():
        raise CsvReadError("Erro ao ler o arquivo.")
    return parse_csv(text)
