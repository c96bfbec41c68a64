"""
Line / Record Tokenizer.

Splits raw CSV text into lines and each line into cells.

Quoting rules
-------------
* A field may be wrapped in double quotes.
* Inside a quoted field ``""`` is a literal quote and does not close it.
* An unquoted delimiter always splits; a quoted one never does.
* Every cell is trimmed after unescaping.
* An unbalanced quote swallows the rest of the line into the open field.
  This is best-effort and never raises.

Quoted fields spanning several lines are not supported: lines are split
before cells are.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator

_LINE_BREAK_RE = re.compile(r"\r?\n")

BOM = "\ufeff"


def tokenize_line(line: str, delimiter: str = ",") -> list[str]:
    """Split a single CSV line into trimmed cell strings."""
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    values.append("".join(current).strip())
    return values


def is_blank(line: str) -> bool:
    return not line.strip()


def split_lines(text: str) -> list[str]:
    """Split text on ``\\r\\n`` or ``\\n`` and drop blank lines."""
    return [line for line in _LINE_BREAK_RE.split(text) if not is_blank(line)]


def strip_line_ending(line: str) -> str:
    return line.rstrip("\r\n")


def non_blank(lines: Iterable[str]) -> Iterator[str]:
    """Yield lines (endings removed) that contain something besides whitespace."""
    for line in lines:
        line = strip_line_ending(line)
        if not is_blank(line):
            yield line


def parse_header(line: str, delimiter: str = ",") -> list[str]:
    """Tokenize the header line, dropping a UTF-8 byte-order mark."""
    return tokenize_line(line.lstrip(BOM), delimiter)


def build_row(header: list[str], values: list[str]) -> dict[str, str]:
    """Zip header and cells into a row.

    Missing trailing cells become ``""``; cells beyond the header are
    dropped.  Duplicate header names keep the last cell.
    """
    return {
        name: values[idx] if idx < len(values) else ""
        for idx, name in enumerate(header)
    }
