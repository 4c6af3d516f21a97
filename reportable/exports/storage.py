# reportable/exports/storage.py
"""Storage disks the finished CSV files are moved to."""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from reportable.core.config import ReportableConfig, get_config
from reportable.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class Storage(ABC):
    """Addressable by disk name + relative path."""

    @abstractmethod
    def exists(self, disk: str, path: str) -> bool:
        ...

    @abstractmethod
    def make_directory(self, disk: str, path: str) -> None:
        ...

    @abstractmethod
    def put_file(self, disk: str, path: str, source: str) -> None:
        """Place the full contents of local file ``source`` at ``path``."""

    @abstractmethod
    def get(self, disk: str, path: str) -> str:
        ...


class LocalStorage(Storage):
    """Disks backed by directories on the local filesystem."""

    def __init__(self, roots: Optional[Dict[str, str]] = None, config: Optional[ReportableConfig] = None):
        self.roots = {name: Path(root) for name, root in (roots or (config or get_config()).disk_roots()).items()}

    def path(self, disk: str, path: str) -> Path:
        root = self.roots.get(disk)
        if root is None:
            raise StorageError(f"Storage disk '{disk}' is not configured")
        resolved = (root / path.lstrip("/")).resolve()
        if root.resolve() not in resolved.parents and resolved != root.resolve():
            raise StorageError(f"Path '{path}' escapes the root of disk '{disk}'")
        return resolved

    def exists(self, disk: str, path: str) -> bool:
        return self.path(disk, path).exists()

    def make_directory(self, disk: str, path: str) -> None:
        self.path(disk, path).mkdir(parents=True, exist_ok=True)

    def put_file(self, disk: str, path: str, source: str) -> None:
        destination = self.path(disk, path)
        if not destination.parent.exists():
            logger.info("Creating directory %s on disk %s", destination.parent, disk)
            destination.parent.mkdir(parents=True, exist_ok=True)

        # Copy beside the destination, then swap it in with a single rename
        staging = destination.with_name(f".{destination.name}.part")
        try:
            shutil.copyfile(source, staging)
            os.replace(staging, destination)
        except OSError as e:
            if staging.exists():
                staging.unlink()
            raise StorageError(f"Could not write '{path}' to disk '{disk}': {e}") from e

    def get(self, disk: str, path: str) -> str:
        return self.path(disk, path).read_text(encoding="utf-8")
