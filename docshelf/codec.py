"""
docshelf.codec

```markdown
Converts stored values to and from the JSON text persisted for each field.

Per-variant conversion is resolved with plum multiple dispatch. Decoding is
best-effort: absent or malformed text degrades to `None` (or an empty list)
and is logged, never raised.
```
"""

import base64
import json
import logging
from dataclasses import asdict, is_dataclass
from io import BytesIO
from typing import Any, List, Optional, Union

from PIL import Image
from plum import Dispatcher
from pydantic import BaseModel

from .errors import ValueEncodingError
from .values import Blob

logger = logging.getLogger(__name__)

__all__ = [
    "ValueCodec",
]

_dispatch = Dispatcher()


# ------------------------------------------------------------------------------
# STRUCTURED CONVERSION
# ------------------------------------------------------------------------------


def _blob_to_text(blob: Blob) -> str:
    return base64.b64encode(blob.data).decode("ascii")


@_dispatch
def _to_structured(value: bool):
    return value


@_dispatch
def _to_structured(value: int):
    return value


@_dispatch
def _to_structured(value: float):
    return value


@_dispatch
def _to_structured(value: str):
    return value


@_dispatch
def _to_structured(value: Blob):
    return _blob_to_text(value)


@_dispatch
def _to_structured(value: Image.Image):
    return _blob_to_text(Blob.from_image(value))


@_dispatch
def _to_structured(value: list):
    return [_to_structured(item) for item in value]


@_dispatch
def _to_structured(value: tuple):
    return [_to_structured(item) for item in value]


@_dispatch
def _to_structured(value: dict):
    """JSON objects only have string keys."""
    return {str(key): _to_structured(item) for key, item in value.items()}


@_dispatch
def _to_structured(value: BaseModel):
    try:
        dumped = value.model_dump(mode="json")
    except Exception as e:
        raise ValueEncodingError(
            f"Cannot serialize model of type {type(value).__name__}: {e}"
        ) from e
    return _to_structured(dumped)


@_dispatch
def _to_structured(value: object):
    """Handles `None` and dataclass instances; everything else is rejected."""
    if value is None:
        return None
    if is_dataclass(value) and not isinstance(value, type):
        return _to_structured(asdict(value))
    raise ValueEncodingError(
        f"Cannot store value of type {type(value).__name__}. "
        "Use a pydantic model or dataclass for structured objects "
        "and Blob for binary data."
    )


# ------------------------------------------------------------------------------
# CODEC
# ------------------------------------------------------------------------------


class ValueCodec:
    """
    ```markdown
    Bidirectional conversion between stored values and their JSON text.
    ```

    Example:
        ```python
        codec = ValueCodec()
        text = codec.encode([1, "two", 3.0, None])
        codec.decode(text)  # [1, "two", 3.0, None]
        codec.decode("{not json")  # None
        ```
    """

    def encode(self, value: Any) -> str:
        """
        ```markdown
        Encode a value into its canonical JSON text. A `Blob` (or Pillow
        image) anywhere in the value is stored as base64 text.
        ```

        Raises:
            ValueEncodingError: If the value (or a nested element) has no
                supported structural encoding.
        """
        return json.dumps(_to_structured(value), separators=(",", ":"))

    def decode(self, text: Optional[str]) -> Any:
        """Decode JSON text; `None` if the text is absent or malformed."""
        if text is None:
            return None
        try:
            return json.loads(text)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning(f"Failed to decode stored value: {e}")
            return None

    def decode_list(self, text: Optional[str]) -> List[Any]:
        """
        ```markdown
        Decode JSON text as a list. Absent, malformed and non-list values all
        decode to a new empty list.
        ```
        """
        value = self.decode(text)
        if isinstance(value, list):
            return value
        if value is not None:
            logger.debug(
                f"Stored value is a {type(value).__name__}, not a list. Treating as empty."
            )
        return []

    def encode_blob(self, value: Union[Blob, Image.Image]) -> str:
        """
        Encode binary image data. Pillow images are compressed to PNG first.

        Raises:
            ValueEncodingError: If the value is neither a Blob nor an image.
        """
        if isinstance(value, Image.Image):
            value = Blob.from_image(value)
        if not isinstance(value, Blob):
            raise ValueEncodingError(
                f"Expected a Blob or PIL image, got {type(value).__name__}"
            )
        return json.dumps(_blob_to_text(value))

    def decode_blob(self, text: Optional[str]) -> Optional[Blob]:
        """
        ```markdown
        Reconstruct binary image data from its stored text. Accepts both the
        JSON-quoted form written by `encode_blob` and bare base64.
        ```

        Returns:
            The blob, or `None` if the text is absent, is not valid base64,
            or does not hold a readable image.
        """
        if text is None:
            return None
        try:
            payload = json.loads(text) if text.startswith('"') else text
            if not isinstance(payload, str):
                return None
            raw = base64.b64decode(payload)
            if not raw:
                return None
            with Image.open(BytesIO(raw)) as image:
                image_format = image.format
                image.verify()
            return Blob(data=raw, format=image_format or "PNG")
        except Exception as e:
            logger.warning(f"Failed to decode stored image: {e}")
            return None
