"""
Tabular parser for uploaded CSV text

Strategy: naive comma split with per-field trimming. The first non-blank
line is the header; data lines whose field count differs from the header
are dropped rather than failing the whole upload.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from .config import FIELD_SEPARATOR, LINE_SEPARATOR
from .exceptions import DuplicateColumnError

logger = logging.getLogger(__name__)

# A row is a read-only view keyed by column name, in schema order
Row = Mapping[str, str]


@dataclass(frozen=True)
class Dataset:
    """Parsed rows plus the column schema taken from the header line"""
    columns: Tuple[str, ...] = ()
    rows: Tuple[Row, ...] = ()

    @classmethod
    def empty(cls) -> "Dataset":
        return cls()

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def head(self, n: int) -> List[Dict[str, str]]:
        """First n rows as plain dicts (key order preserved)"""
        return [dict(row) for row in self.rows[:max(n, 0)]]

    def describe(self) -> str:
        """Short human-readable shape summary"""
        return f"{self.row_count} rows and {self.column_count} columns detected."


class TabularParser:
    """Converts raw delimited text into a Dataset"""

    def __init__(self, separator: str = FIELD_SEPARATOR):
        self.separator = separator

    def _split(self, line: str) -> List[str]:
        return [field.strip() for field in line.split(self.separator)]

    def parse(self, raw_text: str) -> Dataset:
        """
        Parse CSV text into a Dataset

        Args:
            raw_text: Full text content of the uploaded file

        Returns:
            Dataset (empty when the text has no non-blank lines)

        Raises:
            DuplicateColumnError if the header repeats a column name
        """
        lines = [line for line in raw_text.split(LINE_SEPARATOR) if line.strip()]
        if not lines:
            logger.debug("No non-blank lines found, returning empty dataset")
            return Dataset.empty()

        columns = tuple(self._split(lines[0]))
        duplicates = [name for name, count in Counter(columns).items() if count > 1]
        if duplicates:
            raise DuplicateColumnError(duplicates)

        rows: List[Row] = []
        dropped = 0
        for line in lines[1:]:
            values = self._split(line)
            if len(values) != len(columns):
                dropped += 1
                continue
            rows.append(MappingProxyType(dict(zip(columns, values))))

        if dropped:
            logger.debug(f"Dropped {dropped} line(s) with a field count other than {len(columns)}")
        logger.info(f"Parsed {len(rows)} rows x {len(columns)} columns")

        return Dataset(columns=columns, rows=tuple(rows))


def parse_csv(raw_text: str) -> Dataset:
    """Parse CSV text with the default comma separator"""
    return TabularParser().parse(raw_text)
