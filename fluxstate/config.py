"""
FluxState configuration.

Environment variables read by `PersistConfig.from_env()`:
    FLUXSTATE_SCHEMA_VERSION  integer key prefix (default 1)
    FLUXSTATE_CACHE_SIZE      max cached keys (default 10000)
    FLUXSTATE_DOCUMENTS_DIR   directory for save_to_file/load_from_file
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

DEFAULT_SCHEMA_VERSION = 1
DEFAULT_CACHE_SIZE = 10000


def _default_documents_dir() -> Path:
    return Path.home() / ".fluxstate"


@dataclass(frozen=True)
class PersistConfig:
    """Settings for a FluxPersist instance."""

    schema_version: int = DEFAULT_SCHEMA_VERSION
    cache_size: int = DEFAULT_CACHE_SIZE
    documents_dir: Path = field(default_factory=_default_documents_dir)

    def __post_init__(self):
        if self.cache_size < 1:
            raise ValueError(f"cache_size must be positive, got {self.cache_size}")
        # Accept str paths
        object.__setattr__(self, "documents_dir", Path(self.documents_dir))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PersistConfig":
        env = os.environ if environ is None else environ
        kwargs: dict = {}
        if "FLUXSTATE_SCHEMA_VERSION" in env:
            kwargs["schema_version"] = int(env["FLUXSTATE_SCHEMA_VERSION"])
        if "FLUXSTATE_CACHE_SIZE" in env:
            kwargs["cache_size"] = int(env["FLUXSTATE_CACHE_SIZE"])
        if "FLUXSTATE_DOCUMENTS_DIR" in env:
            kwargs["documents_dir"] = Path(env["FLUXSTATE_DOCUMENTS_DIR"])
        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> "PersistConfig":
        return replace(self, **overrides)
