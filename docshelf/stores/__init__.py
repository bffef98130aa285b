"""
docshelf.stores

```markdown
Document stores built on a namespaced key-value backend.
```
"""

import sys
from importlib import import_module
from typing import Any, Dict, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .document_store import (
        DocumentStore,
        DocumentStoreConfig,
        DocumentView,
        create_document_store,
        DEFAULT_DOCUMENT,
        DOCUMENT_PREFIX,
    )


IMPORT_MAP: Dict[str, Tuple[str, str]] = {
    # ----------------------------
    # Document Store
    # ----------------------------
    "DocumentStore": (".document_store", "DocumentStore"),
    "DocumentStoreConfig": (".document_store", "DocumentStoreConfig"),
    "DocumentView": (".document_store", "DocumentView"),
    "create_document_store": (".document_store", "create_document_store"),
    "DEFAULT_DOCUMENT": (".document_store", "DEFAULT_DOCUMENT"),
    "DOCUMENT_PREFIX": (".document_store", "DOCUMENT_PREFIX"),
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
    "DocumentStore",
    "DocumentStoreConfig",
    "DocumentView",
    "create_document_store",
    "DEFAULT_DOCUMENT",
    "DOCUMENT_PREFIX",
]
