"""
docshelf.errors

```markdown
Exceptions raised by `docshelf`. Missing or malformed data never raises;
only failures of the storage medium and unencodable values do.
```
"""

__all__ = [
    "DocShelfError",
    "BackendError",
    "ValueEncodingError",
]


class DocShelfError(Exception):
    """Base class for all `docshelf` errors."""


class BackendError(DocShelfError, RuntimeError):
    """
    ```markdown
    The backing persistence primitive could not be initialized, read or
    written. The original exception is chained as `__cause__`.
    ```
    """


class ValueEncodingError(DocShelfError, TypeError):
    """A value has no supported structural encoding."""
