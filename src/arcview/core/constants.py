"""
Archive format constants, magic numbers, and defaults.
"""

# Magic numbers
GZIP_MAGIC = b"\x1f\x8b"
BZIP2_MAGIC = b"BZh"
XZ_MAGIC = b"\xfd7zXZ\x00"

# Longest signature we need to sniff
SIGNATURE_PEEK_SIZE = 8

# Buffer sizes
DEFAULT_BUFFER_SIZE = 1024 * 1024  # 1 MB - gzip read buffer
COPY_CHUNK_SIZE = 128 * 1024  # 128 KB

# Text
DEFAULT_TEXT_ENCODING = "utf-8"

# Streaming
DEFAULT_MAX_CONSECUTIVE_FAILURES = 16

# Error policies understood by ReaderConfig
ERROR_POLICY_RETHROW = "rethrow"
ERROR_POLICY_IGNORE = "ignore"
ERROR_POLICY_LOG = "log"
ERROR_POLICIES = (ERROR_POLICY_RETHROW, ERROR_POLICY_IGNORE, ERROR_POLICY_LOG)
