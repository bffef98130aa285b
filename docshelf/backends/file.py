"""
docshelf.backends.file

```markdown
Namespace storage on disk: one JSON file per namespace holding the namespace
name and its fields. Files are named after the quoted namespace; names too
long for the file system are shortened to a prefix plus a SHA-256 digest.
Writes are atomic (temp file then replace) and serialized per file within
the process.
```
"""

import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

from ..errors import BackendError
from .base import NamespaceBackend

logger = logging.getLogger(__name__)

__all__ = [
    "FileNamespaceBackend",
    "PathLockRegistry",
]

_SUFFIX = ".json"

# Longest file stem written as-is; leaves room for the suffixes within the
# common 255-byte file name limit.
_MAX_STEM = 200


class PathLockRegistry:
    """
    Provides a stable lock per normalized file path to avoid global contention.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, path: Path) -> threading.Lock:
        key = str(path.resolve())
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


_PATH_LOCKS = PathLockRegistry()


class FileNamespaceBackend(NamespaceBackend):
    """
    ```markdown
    Stores each namespace as a JSON file in a single directory.

    - Missing or invalid files read as an empty namespace.
    - Removing the last key of a namespace deletes its file.
    ```

    Example:
        ```python
        backend = FileNamespaceBackend("./data")
        backend.put("settings", "theme", '"dark"')
        backend.namespaces()  # ["settings"]
        ```
    """

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create storage directory: {e}", exc_info=True)
            raise BackendError(
                f"Storage directory could not be created: {self._directory}"
            ) from e
        logger.info(f"File storage initialized at {self._directory}")

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, namespace: str) -> Path:
        stem = quote(namespace, safe="")
        if len(stem) > _MAX_STEM:
            digest = hashlib.sha256(namespace.encode("utf-8")).hexdigest()
            # One character longer than any unshortened stem
            stem = f"{stem[: _MAX_STEM - len(digest)]}~{digest}"
        return self._directory / f"{stem}{_SUFFIX}"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        """Parsed file contents; `None` if the file is missing or unusable."""
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}", exc_info=True)
            raise BackendError(f"Could not read namespace file {path}") from e
        if not raw.strip():
            return None
        try:
            data: Any = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Ignoring invalid namespace file {path}: {e}")
            return None
        if not isinstance(data, dict) or not isinstance(data.get("fields"), dict):
            return None
        return data

    def _load(self, path: Path) -> Dict[str, str]:
        data = self._read(path)
        if data is None:
            return {}
        return {str(k): v for k, v in data["fields"].items() if isinstance(v, str)}

    def _save(self, path: Path, namespace: str, entries: Dict[str, str]) -> None:
        try:
            if not entries:
                path.unlink(missing_ok=True)
                return
            tmp_path = path.with_suffix(path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(
                    {"namespace": namespace, "fields": entries},
                    f,
                    indent=2,
                    sort_keys=True,
                )
                f.write("\n")
            tmp_path.replace(path)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}", exc_info=True)
            raise BackendError(f"Could not write namespace file {path}") from e

    def get(self, namespace: str, key: str) -> Optional[str]:
        path = self._path(namespace)
        with _PATH_LOCKS.lock_for(path):
            return self._load(path).get(key)

    def put(self, namespace: str, key: str, raw: str) -> None:
        path = self._path(namespace)
        with _PATH_LOCKS.lock_for(path):
            entries = self._load(path)
            entries[key] = raw
            self._save(path, namespace, entries)
        logger.debug(f"Set '{namespace}/{key}' in {path}.")

    def remove(self, namespace: str, key: str) -> None:
        path = self._path(namespace)
        with _PATH_LOCKS.lock_for(path):
            entries = self._load(path)
            if key not in entries:
                return
            del entries[key]
            self._save(path, namespace, entries)
        logger.debug(f"Removed '{namespace}/{key}' from {path}.")

    def keys(self, namespace: str) -> List[str]:
        path = self._path(namespace)
        with _PATH_LOCKS.lock_for(path):
            return list(self._load(path))

    def namespaces(self) -> List[str]:
        """Names recorded in the namespace files; shortened file names are never parsed."""
        try:
            paths = [p for p in self._directory.iterdir() if p.suffix == _SUFFIX]
        except OSError as e:
            logger.error(f"Failed to list {self._directory}: {e}", exc_info=True)
            raise BackendError(
                f"Could not list storage directory {self._directory}"
            ) from e
        names: List[str] = []
        for path in paths:
            if not path.is_file():
                continue
            with _PATH_LOCKS.lock_for(path):
                data = self._read(path)
            if data and data["fields"] and isinstance(data.get("namespace"), str):
                names.append(data["namespace"])
        return names

    def delete_namespace(self, namespace: str) -> None:
        path = self._path(namespace)
        with _PATH_LOCKS.lock_for(path):
            self._save(path, namespace, {})
        logger.debug(f"Deleted namespace file {path}.")
