"""
docshelf.backends

```markdown
Namespaced key-value persistence primitives a document store can be
bound to.
```
"""

import sys
from importlib import import_module
from typing import Any, Dict, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import NamespaceBackend, StorageType
    from .memory import MemoryNamespaceBackend
    from .file import FileNamespaceBackend
    from .persistent import PersistentNamespaceBackend, PersistentFieldItem


IMPORT_MAP: Dict[str, Tuple[str, str]] = {
    # ----------------------------
    # Protocol
    # ----------------------------
    "NamespaceBackend": (".base", "NamespaceBackend"),
    "StorageType": (".base", "StorageType"),
    # ----------------------------
    # Implementations
    # ----------------------------
    "MemoryNamespaceBackend": (".memory", "MemoryNamespaceBackend"),
    "FileNamespaceBackend": (".file", "FileNamespaceBackend"),
    "PersistentNamespaceBackend": (".persistent", "PersistentNamespaceBackend"),
    "PersistentFieldItem": (".persistent", "PersistentFieldItem"),
}


def __getattr__(name: str) -> Any:
    """Handle dynamic imports for module attributes."""
    if name in IMPORT_MAP:
        module_path, attr_name = IMPORT_MAP[name]
        module = import_module(module_path, __name__)
        return getattr(module, attr_name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> "list[str]":
    """Return list of module attributes for auto-completion."""
    return list(__all__)


if sys.version_info >= (3, 7):
    __getattr__.__module__ = __name__


__all__ = [
    "NamespaceBackend",
    "StorageType",
    "MemoryNamespaceBackend",
    "FileNamespaceBackend",
    "PersistentNamespaceBackend",
    "PersistentFieldItem",
]
