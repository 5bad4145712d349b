"""
Monitoring utilities for arcview.
"""

from arcview.monitoring.metrics import (
    BYTES_DECODED,
    DECODES_PERFORMED,
    ENTRIES_READ,
    ENTRY_FAILURES,
)

__all__ = [
    "DECODES_PERFORMED",
    "ENTRIES_READ",
    "ENTRY_FAILURES",
    "BYTES_DECODED",
]
