"""
docshelf.backends.base

```markdown
The namespaced key-value persistence primitive a document store is built on.
```
"""

from typing import List, Literal, Optional, Protocol

__all__ = [
    "NamespaceBackend",
    "StorageType",
]

StorageType = Literal["memory", "file", "persistent"]


class NamespaceBackend(Protocol):
    """
    ```markdown
    Raw string storage grouped into namespaces.

    Implementations persist every write immediately and raise
    `docshelf.errors.BackendError` when the storage medium fails.
    ```
    """

    def get(self, namespace: str, key: str) -> Optional[str]:
        """Return the raw string at `key`, or `None` if absent."""
        ...

    def put(self, namespace: str, key: str, raw: str) -> None:
        """Store `raw` at `key`, overwriting any previous value."""
        ...

    def remove(self, namespace: str, key: str) -> None:
        """Delete `key`; no-op if absent."""
        ...

    def keys(self, namespace: str) -> List[str]:
        """All keys in `namespace` (empty if the namespace does not exist)."""
        ...

    def namespaces(self) -> List[str]:
        """All namespaces holding at least one key."""
        ...

    def delete_namespace(self, namespace: str) -> None:
        """Delete a namespace and every key in it; no-op if absent."""
        ...
