"""
Stage 1: Ingest
Parses uploaded comma-separated text into a Dataset with a stable column schema
"""

from .tabular_parser import Dataset, Row, TabularParser, parse_csv
from .exceptions import IngestError, DuplicateColumnError

__all__ = [
    'Dataset',
    'Row',
    'TabularParser',
    'parse_csv',
    'IngestError',
    'DuplicateColumnError'
]
