"""
docshelf.stores.document_store

```markdown
A persistent key-value store organized into named documents, each holding
named fields. Field values are encoded to JSON text and written through an
injected namespaced persistence backend, one namespace per document.
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import (
    Any,
    List,
    Optional,
    Type,
    TypeVar,
    Union,
)

from PIL import Image

from ..backends.base import NamespaceBackend, StorageType
from ..codec import ValueCodec
from ..values import (
    Blob,
    BOOL_DEFAULT,
    STRING_DEFAULT,
    INT_DEFAULT,
    INT_MAX,
    FLOAT_DEFAULT,
    LONG_DEFAULT,
    LONG_MAX,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DocumentStore",
    "DocumentStoreConfig",
    "DocumentView",
    "create_document_store",
    "DEFAULT_DOCUMENT",
    "DOCUMENT_PREFIX",
]

M = TypeVar("M")

DEFAULT_DOCUMENT = "APP_DATA_MAIN"

# Random prefix to avoid collisions with other users of the same backend.
DOCUMENT_PREFIX = "03f8eojdgf74_"


@dataclass
class DocumentStoreConfig:
    """
    ```markdown
    Configuration for DocumentStore initialization.
    ```
    """

    type: StorageType = "memory"
    location: Optional[str] = None  # Directory for "file", DB URL for "persistent"
    default_document: str = DEFAULT_DOCUMENT
    prefix: str = DOCUMENT_PREFIX
    echo_sql: bool = False

    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600


def _create_backend(config: DocumentStoreConfig) -> NamespaceBackend:
    """Build the backend named by `config.type`."""
    if config.type == "memory":
        from ..backends.memory import MemoryNamespaceBackend

        return MemoryNamespaceBackend()
    elif config.type == "file":
        from ..backends.file import FileNamespaceBackend

        if not config.location:
            raise ValueError("A directory location must be provided for file storage.")
        return FileNamespaceBackend(config.location)
    elif config.type == "persistent":
        from ..backends.persistent import PersistentNamespaceBackend

        return PersistentNamespaceBackend(
            config.location or "",
            echo_sql=config.echo_sql,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
        )
    else:
        raise ValueError(f"Unsupported storage type: {config.type}")


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class DocumentStore:
    """
    ```markdown
    Document/field storage over a namespaced key-value backend.

    Every operation takes an explicit document name. `store.default` (and
    `store.document(name)`) return a `DocumentView` exposing the same
    operations without the document argument.

    Reads never fail on missing or malformed data: they return `None`, an
    empty list or the typed accessor defaults. Only backend failures raise
    (`BackendError`).

    List operations read the whole list, change it and write it back with
    no locking. Two writers changing the same list concurrently can lose
    one of the updates.
    ```

    Example:
        ```python
        store = create_document_store(default_document="Default")
        store.set("profile", "name", "Ada").set("profile", "age", 36)
        store.get_string("profile", "name")  # "Ada"

        store.default.add_to_list("recent", "A", 0)
        store.default.add_to_list("recent", "B", 0)
        store.default.get_list("recent")  # ["B", "A"]
        ```
    """

    def __init__(
        self,
        backend: Optional[NamespaceBackend] = None,
        config: Optional[DocumentStoreConfig] = None,
        *,
        default_document: Optional[str] = None,
        prefix: Optional[str] = None,
    ):
        """
        ```markdown
        Initialize the DocumentStore.
        ```

        Args:
            backend: Persistence backend. Built from `config` when omitted.
            config: Store configuration.
            default_document: Overrides `config.default_document`.
            prefix: Overrides `config.prefix`.
        """
        config = config or DocumentStoreConfig()
        if default_document is not None:
            config = replace(config, default_document=default_document)
        if prefix is not None:
            config = replace(config, prefix=prefix)
        if not config.prefix:
            raise ValueError("Document prefix must be a non-empty string.")

        self.config = config
        self._backend = backend if backend is not None else _create_backend(config)
        self._codec = ValueCodec()

        logger.info(
            f"DocumentStore initialized with type: "
            f"{type(self._backend).__name__}, default document: {config.default_document}"
        )

    @property
    def backend(self) -> NamespaceBackend:
        return self._backend

    @property
    def default_document(self) -> str:
        return self.config.default_document

    @property
    def default(self) -> "DocumentView":
        """View of the default document."""
        return DocumentView(self, self.config.default_document)

    def document(self, name: str) -> "DocumentView":
        """View of the document `name`."""
        return DocumentView(self, name)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _namespace(self, document: str) -> str:
        return f"{self.config.prefix}{document}"

    def _read(self, document: Optional[str], field: Optional[str]) -> Optional[str]:
        if document is None or field is None:
            return None
        return self._backend.get(self._namespace(document), field)

    def _write(self, document: Optional[str], field: Optional[str], raw: str) -> None:
        self._backend.put(self._namespace(document), field, raw)
        logger.debug(f"Set field '{field}' in document '{document}'.")

    # ------------------------------------------------------------------
    # Scalar operations
    # ------------------------------------------------------------------

    def set(self, document: str, field: str, value: Any) -> "DocumentStore":
        """
        ```markdown
        Store `value` at the field, replacing whatever was there (of any
        type). Blobs and Pillow images inside `value` are stored as base64
        text.
        ```

        Raises:
            ValueEncodingError: If `value` has no supported encoding.
            BackendError: If the backend write fails.
        """
        if document is None or field is None:
            logger.warning("Ignoring write with a missing document or field name.")
            return self
        self._write(document, field, self._codec.encode(value))
        return self

    def set_blob(
        self, document: str, field: str, image: Union[Blob, Image.Image]
    ) -> "DocumentStore":
        """Store binary image data at the field."""
        if document is None or field is None:
            logger.warning("Ignoring write with a missing document or field name.")
            return self
        self._write(document, field, self._codec.encode_blob(image))
        return self

    def get(self, document: str, field: str) -> Any:
        """The decoded value at the field, or `None` if absent or undecodable."""
        return self._codec.decode(self._read(document, field))

    def get_bool(self, document: str, field: str) -> bool:
        """The boolean at the field, or `False`."""
        value = self.get(document, field)
        return value if isinstance(value, bool) else BOOL_DEFAULT

    def get_string(self, document: str, field: str) -> Optional[str]:
        """The string at the field, or `None`."""
        value = self.get(document, field)
        return value if isinstance(value, str) else STRING_DEFAULT

    def get_int(self, document: str, field: str) -> int:
        """The 32-bit integer at the field, or `-2**31`."""
        value = self.get(document, field)
        if _is_integer(value) and INT_DEFAULT <= value <= INT_MAX:
            return value
        return INT_DEFAULT

    def get_float(self, document: str, field: str) -> float:
        """The float at the field, or the smallest positive single-precision value."""
        value = self.get(document, field)
        return value if isinstance(value, float) else FLOAT_DEFAULT

    def get_long(self, document: str, field: str) -> int:
        """The 64-bit integer at the field, or `-2**63`."""
        value = self.get(document, field)
        if _is_integer(value) and LONG_DEFAULT <= value <= LONG_MAX:
            return value
        return LONG_DEFAULT

    def get_blob(self, document: str, field: str) -> Optional[Blob]:
        """The image data at the field, or `None`."""
        return self._codec.decode_blob(self._read(document, field))

    def get_model(self, document: str, field: str, schema: Type[M]) -> Optional[M]:
        """
        ```markdown
        Rebuild a structured object stored at the field.
        ```

        Args:
            document: The document name.
            field: The field name.
            schema: A pydantic model class or dataclass.

        Returns:
            An instance of `schema`, or `None` if the field is absent, is not
            an object, or does not validate.
        """
        data = self.get(document, field)
        if not isinstance(data, dict):
            return None
        try:
            if hasattr(schema, "model_validate"):
                return schema.model_validate(data)
            # Dataclasses and plain classes
            return schema(**data)
        except Exception as e:
            logger.warning(f"Failed to rebuild {schema!r} from '{document}/{field}': {e}")
            return None

    def contains(self, document: str, field: str) -> bool:
        """Whether the field holds any value."""
        return self._read(document, field) is not None

    def remove(self, document: str, field: str) -> "DocumentStore":
        """Delete the field; no-op if absent."""
        if document is None or field is None:
            return self
        self._backend.remove(self._namespace(document), field)
        logger.debug(f"Removed field '{field}' from document '{document}'.")
        return self

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def clear(self, document: str) -> "DocumentStore":
        """Delete the document and all its fields; no-op if absent."""
        if document is None:
            return self
        self._backend.delete_namespace(self._namespace(document))
        logger.info(f"Cleared document '{document}'")
        return self

    def clear_all(self) -> "DocumentStore":
        """Delete every document of this store."""
        documents = self.list_documents()
        for document in documents:
            self.clear(document)
        logger.info(f"Cleared {len(documents)} documents")
        return self

    def list_documents(self) -> List[str]:
        """Names of all documents holding at least one field."""
        prefix = self.config.prefix
        return [
            namespace[len(prefix) :]
            for namespace in self._backend.namespaces()
            if namespace.startswith(prefix) and len(namespace) > len(prefix)
        ]

    def list_fields(self, document: str) -> List[str]:
        """Names of all fields set in the document."""
        if document is None:
            return []
        return self._backend.keys(self._namespace(document))

    # ------------------------------------------------------------------
    # List operations
    # ------------------------------------------------------------------

    def get_list(self, document: str, field: str) -> List[Any]:
        """
        ```markdown
        A new copy of the list at the field. Absent fields, non-list values
        and malformed data all read as an empty list.
        ```
        """
        return self._codec.decode_list(self._read(document, field))

    def add_to_list(
        self,
        document: str,
        field: str,
        value: Any,
        position: Optional[int] = None,
    ) -> "DocumentStore":
        """
        ```markdown
        Insert `value` into the list at the field. A non-list value at the
        field is replaced by a new list.
        ```

        Args:
            document: The document name.
            field: The field name.
            value: The element to insert.
            position: Insert index, clamped into `[0, len(list)]`: negative
                positions insert first, positions past the end append.
                `None` appends.
        """
        items = self.get_list(document, field)
        if position is None:
            index = len(items)
        else:
            index = max(0, min(len(items), position))
        items.insert(index, value)
        return self.set(document, field, items)

    def set_in_list(
        self, document: str, field: str, value: Any, position: int
    ) -> "DocumentStore":
        """
        ```markdown
        Replace the element at `position`. Does nothing when `position` is
        negative or past the last element.
        ```
        """
        items = self.get_list(document, field)
        if not 0 <= position < len(items):
            logger.debug(
                f"Position {position} out of range for '{document}/{field}' "
                f"(size {len(items)}). Nothing replaced."
            )
            return self
        items[position] = value
        return self.set(document, field, items)

    def remove_from_list(self, document: str, field: str, position: int) -> "DocumentStore":
        """
        ```markdown
        Remove the element at `position`. Does nothing when the field is
        absent, is not a list, or has no element at `position`.
        ```
        """
        items = self.get_list(document, field)
        if not 0 <= position < len(items):
            return self
        del items[position]
        return self.set(document, field, items)

    def get_from_list(self, document: str, field: str, position: int) -> Any:
        """The element at `position`, or `None` if there is none."""
        items = self.get_list(document, field)
        if not 0 <= position < len(items):
            return None
        return items[position]


class DocumentView:
    """
    ```markdown
    A `DocumentStore` bound to one document. Every method delegates to the
    store method of the same name with this view's document filled in.
    ```

    Example:
        ```python
        settings = store.document("settings")
        settings.set("theme", "dark").set("volume", 7)
        settings.get_int("volume")  # 7
        settings.fields()  # ["theme", "volume"]
        ```
    """

    def __init__(self, store: DocumentStore, name: str):
        self._store = store
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def store(self) -> DocumentStore:
        return self._store

    def __repr__(self):
        return f"<DocumentView(name='{self._name}')>"

    def set(self, field: str, value: Any) -> "DocumentView":
        self._store.set(self._name, field, value)
        return self

    def set_blob(self, field: str, image: Union[Blob, Image.Image]) -> "DocumentView":
        self._store.set_blob(self._name, field, image)
        return self

    def get(self, field: str) -> Any:
        return self._store.get(self._name, field)

    def get_bool(self, field: str) -> bool:
        return self._store.get_bool(self._name, field)

    def get_string(self, field: str) -> Optional[str]:
        return self._store.get_string(self._name, field)

    def get_int(self, field: str) -> int:
        return self._store.get_int(self._name, field)

    def get_float(self, field: str) -> float:
        return self._store.get_float(self._name, field)

    def get_long(self, field: str) -> int:
        return self._store.get_long(self._name, field)

    def get_blob(self, field: str) -> Optional[Blob]:
        return self._store.get_blob(self._name, field)

    def get_model(self, field: str, schema: Type[M]) -> Optional[M]:
        return self._store.get_model(self._name, field, schema)

    def contains(self, field: str) -> bool:
        return self._store.contains(self._name, field)

    def remove(self, field: str) -> "DocumentView":
        self._store.remove(self._name, field)
        return self

    def clear(self) -> "DocumentView":
        self._store.clear(self._name)
        return self

    def fields(self) -> List[str]:
        return self._store.list_fields(self._name)

    def get_list(self, field: str) -> List[Any]:
        return self._store.get_list(self._name, field)

    def add_to_list(
        self, field: str, value: Any, position: Optional[int] = None
    ) -> "DocumentView":
        self._store.add_to_list(self._name, field, value, position)
        return self

    def set_in_list(self, field: str, value: Any, position: int) -> "DocumentView":
        self._store.set_in_list(self._name, field, value, position)
        return self

    def remove_from_list(self, field: str, position: int) -> "DocumentView":
        self._store.remove_from_list(self._name, field, position)
        return self

    def get_from_list(self, field: str, position: int) -> Any:
        return self._store.get_from_list(self._name, field, position)


def create_document_store(
    type: StorageType = "memory",
    location: Optional[str] = None,
    default_document: str = DEFAULT_DOCUMENT,
    prefix: str = DOCUMENT_PREFIX,
    echo_sql: bool = False,
) -> DocumentStore:
    """
    ```markdown
    Factory function to create a DocumentStore instance.
    ```

    Args:
        type: Storage backend type ("memory", "file" or "persistent").
        location: Directory (for "file") or database URL (for "persistent").
        default_document: Document used by `store.default`.
        prefix: Namespace prefix isolating this store's documents.
        echo_sql: Whether to echo SQL statements (for "persistent" type).

    Example:
        ```python
        store = create_document_store("persistent", "sqlite:///app.db")
        store.default.set("launches", 1)
        ```

    Returns:
        An instance of DocumentStore.
    """
    config = DocumentStoreConfig(
        type=type,
        location=location,
        default_document=default_document,
        prefix=prefix,
        echo_sql=echo_sql,
    )
    return DocumentStore(config=config)
