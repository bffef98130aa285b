"""
docshelf

```markdown
A lightweight persistent key-value store organized into named documents
of fields holding scalars, strings, images, structured objects and lists.
```
"""

from .errors import DocShelfError, BackendError, ValueEncodingError
from .values import ValueKind, Blob, kind_of
from .codec import ValueCodec
from .backends import (
    NamespaceBackend,
    StorageType,
    MemoryNamespaceBackend,
    FileNamespaceBackend,
    PersistentNamespaceBackend,
)
from .stores import (
    DocumentStore,
    DocumentStoreConfig,
    DocumentView,
    create_document_store,
)


__all__ = [
    # ----------------------------
    # Errors
    # ----------------------------
    "DocShelfError",
    "BackendError",
    "ValueEncodingError",
    # ----------------------------
    # Values
    # ----------------------------
    "ValueKind",
    "Blob",
    "kind_of",
    "ValueCodec",
    # ----------------------------
    # Backends
    # ----------------------------
    "NamespaceBackend",
    "StorageType",
    "MemoryNamespaceBackend",
    "FileNamespaceBackend",
    "PersistentNamespaceBackend",
    # ----------------------------
    # Stores
    # ----------------------------
    "DocumentStore",
    "DocumentStoreConfig",
    "DocumentView",
    "create_document_store",
]
