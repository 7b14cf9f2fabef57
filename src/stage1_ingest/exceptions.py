"""
Custom exceptions for the tabular ingest stage
"""
from typing import List


class IngestError(Exception):
    """Base exception for ingest errors"""
    pass


class DuplicateColumnError(IngestError):
    """Raised when the header line names the same column more than once"""

    def __init__(self, duplicates: List[str]):
        self.duplicates = duplicates
        super().__init__(f"Duplicate column names in header: {', '.join(duplicates)}")
