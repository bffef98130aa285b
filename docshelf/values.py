"""
docshelf.values

```markdown
The value model stored in document fields.

Native Python values stand in for each variant of a stored value:
`None`, `bool`, `int`, `float`, `str`, `Blob` (encoded image data),
opaque structured objects (pydantic models, dataclasses, dicts) and
lists of any of these.
```
"""

from __future__ import annotations

from dataclasses import dataclass, is_dataclass
from enum import Enum
from io import BytesIO
from typing import Any

from PIL import Image
from pydantic import BaseModel

from .errors import ValueEncodingError

__all__ = [
    "ValueKind",
    "Blob",
    "kind_of",
    "is_opaque",
    "BOOL_DEFAULT",
    "STRING_DEFAULT",
    "INT_DEFAULT",
    "INT_MAX",
    "FLOAT_DEFAULT",
    "LONG_DEFAULT",
    "LONG_MAX",
]


# ------------------------------------------------------------------------------
# TYPED ACCESSOR DEFAULTS
# ------------------------------------------------------------------------------

BOOL_DEFAULT = False
STRING_DEFAULT = None

INT_DEFAULT = -(2**31)
INT_MAX = 2**31 - 1

# Smallest positive single-precision float.
FLOAT_DEFAULT = 2.0**-149

LONG_DEFAULT = -(2**63)
LONG_MAX = 2**63 - 1


class ValueKind(str, Enum):
    """Variants of a stored value."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    TEXT = "text"
    BLOB = "blob"
    OPAQUE = "opaque"
    LIST = "list"


@dataclass(frozen=True)
class Blob:
    """
    ```markdown
    Binary image data, already compressed to a standard image format.
    ```

    Example:
        ```python
        from PIL import Image

        blob = Blob.from_image(Image.new("RGB", (4, 4), "red"))
        image = blob.to_image()
        ```
    """

    data: bytes
    format: str = "PNG"

    @classmethod
    def from_image(cls, image: Image.Image, format: str = "PNG") -> "Blob":
        """
        Compress a Pillow image into a blob.

        Args:
            image: The image to compress.
            format: Pillow format name, PNG by default (lossless).
        """
        buffer = BytesIO()
        image.save(buffer, format=format)
        return cls(data=buffer.getvalue(), format=format)

    def to_image(self) -> Image.Image:
        """Decode the blob back into a Pillow image."""
        image = Image.open(BytesIO(self.data))
        image.load()
        return image


def is_opaque(value: Any) -> bool:
    """True for values that carry their own field structure."""
    if isinstance(value, (BaseModel, dict)):
        return True
    return is_dataclass(value) and not isinstance(value, type)


def kind_of(value: Any) -> ValueKind:
    """
    ```markdown
    Classify a native value into its `ValueKind`.
    ```

    Raises:
        ValueEncodingError: If the value is not storable.
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (Blob, Image.Image)):
        return ValueKind.BLOB
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    if is_opaque(value):
        return ValueKind.OPAQUE
    raise ValueEncodingError(
        f"Cannot store value of type {type(value).__name__}. "
        "Use a pydantic model or dataclass for structured objects "
        "and Blob for binary data."
    )
