"""
docshelf.backends.memory

```markdown
In-process namespace storage. Nothing survives the process.
```
"""

import logging
from typing import Dict, List, Optional

from .base import NamespaceBackend

logger = logging.getLogger(__name__)

__all__ = [
    "MemoryNamespaceBackend",
]


class MemoryNamespaceBackend(NamespaceBackend):
    """Namespaces held as nested dicts; empty namespaces are dropped."""

    def __init__(self) -> None:
        # Memory store: Dict[namespace, Dict[key, raw]]
        self._memory_store: Dict[str, Dict[str, str]] = {}

    def get(self, namespace: str, key: str) -> Optional[str]:
        return self._memory_store.get(namespace, {}).get(key)

    def put(self, namespace: str, key: str, raw: str) -> None:
        self._memory_store.setdefault(namespace, {})[key] = raw
        logger.debug(f"Set '{namespace}/{key}' in memory store.")

    def remove(self, namespace: str, key: str) -> None:
        entries = self._memory_store.get(namespace)
        if entries is None or key not in entries:
            return
        del entries[key]
        if not entries:
            del self._memory_store[namespace]
        logger.debug(f"Removed '{namespace}/{key}' from memory store.")

    def keys(self, namespace: str) -> List[str]:
        return list(self._memory_store.get(namespace, {}))

    def namespaces(self) -> List[str]:
        return list(self._memory_store)

    def delete_namespace(self, namespace: str) -> None:
        if self._memory_store.pop(namespace, None) is not None:
            logger.debug(f"Deleted namespace '{namespace}' from memory store.")
