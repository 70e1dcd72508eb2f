"""
Source ingestion: discovering and reading files before they are chunked.
"""
from .sources import BALLERINA_SUFFIXES, DEFAULT_IGNORE_PATTERNS, SourceProvider

__all__ = ["BALLERINA_SUFFIXES", "DEFAULT_IGNORE_PATTERNS", "SourceProvider"]
