"""
Snapshot Ingestion Module
"""
from .source_reader import FileFormat, SourceSnapshot, SourceTableReader

__all__ = [
    "FileFormat",
    "SourceSnapshot",
    "SourceTableReader",
]
