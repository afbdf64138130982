"""Indexing domain — symbol extraction, file, project and builtin indexers, change scanner."""

from symdex.indexing.builtin_indexer import BuiltinIndexer
from symdex.indexing.code_indexer import extract_symbols, supported_extensions
from symdex.indexing.file_indexer import FileIndexer
from symdex.indexing.project_indexer import ProjectIndexer, ProjectIndexResult
from symdex.indexing.scanner import Scanner

__all__ = [
    "BuiltinIndexer",
    "FileIndexer",
    "ProjectIndexResult",
    "ProjectIndexer",
    "Scanner",
    "extract_symbols",
    "supported_extensions",
]
