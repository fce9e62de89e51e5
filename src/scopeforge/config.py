"""Runtime configuration from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

_TRUTHY = ("1", "true", "yes")


@dataclass
class ScopeforgeConfig:
    """ScopeForge runtime configuration.

    Attributes:
        metadata_path: Directory holding ``entities/`` and ``blocks/`` YAML
        strict: Parse scope expressions in strict mode
        log_level: Logging level name for the CLI and API
    """

    metadata_path: Path
    strict: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> ScopeforgeConfig:
        """Create config from environment variables.

        Resolution order for the metadata path:
        1. SCOPEFORGE_METADATA_PATH env var
        2. {base_path}/metadata
        3. ./metadata
        """
        metadata_path = os.environ.get("SCOPEFORGE_METADATA_PATH")
        if metadata_path:
            path = Path(metadata_path)
        elif base_path:
            path = base_path / "metadata"
        else:
            path = Path.cwd() / "metadata"

        return cls(
            metadata_path=path,
            strict=os.environ.get("SCOPEFORGE_STRICT", "").lower() in _TRUTHY,
            log_level=os.environ.get("SCOPEFORGE_LOG_LEVEL", "INFO").upper(),
        )

    def configure_logging(self) -> None:
        logging.basicConfig(
            level=getattr(logging, self.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
