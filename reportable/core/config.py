# reportable/core/config.py
"""Runtime configuration for report exports, read once from the environment."""

import os
import tempfile
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class ReportableConfig:
    """Settings shared by filter serialization, report definitions and exports."""

    queue: str = "reports"
    # Broker URL for export jobs; None uses the Celery app's broker
    connection: Optional[str] = None
    chunk_size: int = 1000
    disk: str = "local"
    output_path: str = "reports"
    filter_group: str = "filters"
    storage_root: str = "./storage"
    temp_dir: str = field(default_factory=tempfile.gettempdir)
    # Extra disks beyond the default one: disk name -> root directory
    disks: Dict[str, str] = field(default_factory=dict)

    def disk_roots(self) -> Dict[str, str]:
        """All known disks, the default disk rooted at ``storage_root``."""
        roots = {self.disk: self.storage_root}
        roots.update(self.disks)
        return roots

    def with_overrides(self, **changes) -> "ReportableConfig":
        return replace(self, **changes)


def _parse_disks(raw: str) -> Dict[str, str]:
    # REPORTABLE_DISKS="archive=/mnt/archive,exports=/srv/exports"
    disks = {}
    for item in raw.split(","):
        if "=" not in item:
            continue
        name, root = item.split("=", 1)
        if name.strip() and root.strip():
            disks[name.strip()] = root.strip()
    return disks


def load_config() -> ReportableConfig:
    """Build a config from ``REPORTABLE_*`` environment variables."""
    return ReportableConfig(
        queue=os.environ.get("REPORTABLE_QUEUE", "reports"),
        connection=os.environ.get("REPORTABLE_CONNECTION") or None,
        chunk_size=int(os.environ.get("REPORTABLE_CHUNK_SIZE", "1000")),
        disk=os.environ.get("REPORTABLE_DISK", "local"),
        output_path=os.environ.get("REPORTABLE_OUTPUT_PATH", "reports"),
        filter_group=os.environ.get("REPORTABLE_FILTER_GROUP", "filters"),
        storage_root=os.environ.get("REPORTABLE_STORAGE_ROOT", "./storage"),
        temp_dir=os.environ.get("REPORTABLE_TEMP_DIR", tempfile.gettempdir()),
        disks=_parse_disks(os.environ.get("REPORTABLE_DISKS", "")),
    )


@lru_cache()
def get_config() -> ReportableConfig:
    """Process-wide config, loaded on first use."""
    return load_config()
