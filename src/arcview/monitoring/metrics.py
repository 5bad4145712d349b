"""Prometheus metrics for arcview readers."""

from prometheus_client import Counter

# Counters
DECODES_PERFORMED = Counter(
    "arcview_decodes_total",
    "Number of cached values produced by CachedDecoder holders",
    ["label"],
)
ENTRIES_READ = Counter(
    "arcview_entries_read_total", "Number of archive entries decoded", ["format"]
)
ENTRY_FAILURES = Counter(
    "arcview_entry_failures_total",
    "Entries that could not be decoded in streaming archives",
    ["format"],
)
BYTES_DECODED = Counter(
    "arcview_bytes_decoded_total", "Total decoded payload bytes", ["format"]
)

__all__ = [
    "DECODES_PERFORMED",
    "ENTRIES_READ",
    "ENTRY_FAILURES",
    "BYTES_DECODED",
]
