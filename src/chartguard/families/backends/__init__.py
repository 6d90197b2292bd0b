"""Requirement table backends: file (YAML/JSON) and memory."""

from chartguard.families.backends.file_backend import (
    DEFAULT_TABLE_PATH,
    FileRequirementsBackend,
    parse_table,
)
from chartguard.families.backends.memory_backend import MemoryRequirementsBackend
from chartguard.families.backends.protocol import IRequirementsBackend

__all__ = [
    "DEFAULT_TABLE_PATH",
    "FileRequirementsBackend",
    "IRequirementsBackend",
    "MemoryRequirementsBackend",
    "parse_table",
]
