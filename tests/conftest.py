from pathlib import Path

import pytest
from PIL import Image

from docshelf.backends.file import FileNamespaceBackend
from docshelf.backends.memory import MemoryNamespaceBackend
from docshelf.backends.persistent import PersistentNamespaceBackend
from docshelf.stores.document_store import DocumentStore


@pytest.fixture(params=["memory", "file", "persistent"])
def backend(request: pytest.FixtureRequest, tmp_path: Path):
    """Every backend implementation, each rooted in a fresh temp location."""
    if request.param == "memory":
        return MemoryNamespaceBackend()
    if request.param == "file":
        return FileNamespaceBackend(tmp_path / "namespaces")
    return PersistentNamespaceBackend(f"sqlite:///{tmp_path / 'docshelf.db'}")


@pytest.fixture
def store(backend) -> DocumentStore:
    return DocumentStore(backend, default_document="Default")


@pytest.fixture
def image() -> Image.Image:
    img = Image.new("RGB", (4, 3), (255, 0, 0))
    img.putpixel((1, 1), (0, 0, 255))
    return img
