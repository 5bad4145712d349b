from __future__ import annotations

import codecs
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from arcview.core.constants import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_MAX_CONSECUTIVE_FAILURES,
    DEFAULT_TEXT_ENCODING,
    ERROR_POLICIES,
    ERROR_POLICY_RETHROW,
)


def _optional_int(raw: Optional[str]) -> Optional[int]:
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


class ReaderConfig(BaseModel):
    """Reader configuration."""

    buffer_size: int = Field(
        DEFAULT_BUFFER_SIZE,
        gt=0,
        description="Read buffer for file sources and gzip streams (bytes)",
    )
    text_encoding: str = Field(
        DEFAULT_TEXT_ENCODING,
        description="Encoding used by entry_as_string()",
    )
    error_policy: str = Field(
        ERROR_POLICY_RETHROW,
        description="Per-entry failure policy: rethrow, ignore, log",
    )
    max_entries: Optional[int] = Field(
        None,
        gt=0,
        description="Optional upper bound on entries pulled from a tar stream",
    )
    max_consecutive_failures: int = Field(
        DEFAULT_MAX_CONSECUTIVE_FAILURES,
        gt=0,
        description="Swallowed failures in a row after which a tar stream ends",
    )
    zip_compression_level: Optional[int] = Field(
        None,
        ge=0,
        le=9,
        description="Deflate level for single-entry zips (None = zlib default)",
    )

    @field_validator("error_policy")
    @classmethod
    def _check_policy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ERROR_POLICIES:
            raise ValueError(f"error_policy must be one of {', '.join(ERROR_POLICIES)}")
        return value

    @field_validator("text_encoding")
    @classmethod
    def _check_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as e:
            raise ValueError(f"Unknown text encoding: {value!r}") from e
        return value

    @classmethod
    def from_env(cls) -> "ReaderConfig":
        return cls(
            buffer_size=int(os.getenv("ARCVIEW_BUFFER_SIZE", str(DEFAULT_BUFFER_SIZE))),
            text_encoding=os.getenv("ARCVIEW_TEXT_ENCODING", DEFAULT_TEXT_ENCODING),
            error_policy=os.getenv("ARCVIEW_ERROR_POLICY", ERROR_POLICY_RETHROW),
            max_entries=_optional_int(os.getenv("ARCVIEW_MAX_ENTRIES")),
            max_consecutive_failures=int(
                os.getenv(
                    "ARCVIEW_MAX_CONSECUTIVE_FAILURES",
                    str(DEFAULT_MAX_CONSECUTIVE_FAILURES),
                )
            ),
            zip_compression_level=_optional_int(
                os.getenv("ARCVIEW_ZIP_COMPRESSION_LEVEL")
            ),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, "os.PathLike[str]"]) -> "ReaderConfig":
        """
        Load config from a YAML file.

        The settings may sit at the top level or under an ``arcview:`` key.
        """
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Expected a mapping in {path}, got {type(raw).__name__}")
        section: Dict[str, Any] = raw.get("arcview", raw)
        return cls(**section)


__all__ = ["ReaderConfig"]
