import json

import pytest
from sqlalchemy import event

from docshelf.backends.file import FileNamespaceBackend, PathLockRegistry
from docshelf.backends.persistent import PersistentNamespaceBackend
from docshelf.errors import BackendError


class TestNamespaceBackend:
    def test_put_get(self, backend):
        assert backend.get("ns", "key") is None
        backend.put("ns", "key", '"value"')
        assert backend.get("ns", "key") == '"value"'
        backend.put("ns", "key", "[1]")
        assert backend.get("ns", "key") == "[1]"

    def test_keys_and_namespaces(self, backend):
        backend.put("a", "x", "1")
        backend.put("a", "y", "2")
        backend.put("b", "z", "3")
        assert sorted(backend.keys("a")) == ["x", "y"]
        assert backend.keys("missing") == []
        assert sorted(backend.namespaces()) == ["a", "b"]

    def test_remove(self, backend):
        backend.remove("ns", "missing")
        backend.put("ns", "x", "1")
        backend.put("ns", "y", "2")
        backend.remove("ns", "x")
        assert backend.get("ns", "x") is None
        assert backend.keys("ns") == ["y"]

    def test_empty_namespace_is_not_listed(self, backend):
        backend.put("ns", "x", "1")
        backend.remove("ns", "x")
        assert backend.namespaces() == []

    def test_delete_namespace(self, backend):
        backend.delete_namespace("missing")
        backend.put("a", "x", "1")
        backend.put("b", "x", "2")
        backend.delete_namespace("a")
        assert backend.keys("a") == []
        assert backend.namespaces() == ["b"]
        assert backend.get("b", "x") == "2"


class TestFileNamespaceBackend:
    def test_one_file_per_namespace(self, tmp_path):
        backend = FileNamespaceBackend(tmp_path)
        backend.put("settings", "theme", '"dark"')
        assert (tmp_path / "settings.json").is_file()
        assert not list(tmp_path.glob("*.tmp"))

    def test_file_records_namespace_and_fields(self, tmp_path):
        backend = FileNamespaceBackend(tmp_path)
        backend.put("my settings", "theme", '"dark"')
        data = json.loads((tmp_path / "my%20settings.json").read_text(encoding="utf-8"))
        assert data == {"namespace": "my settings", "fields": {"theme": '"dark"'}}

    @pytest.mark.parametrize("namespace", ["n" * 300, "\u00e9" * 60, "doc/" * 80])
    def test_long_namespaces_get_bounded_file_names(self, tmp_path, namespace):
        backend = FileNamespaceBackend(tmp_path)
        assert backend.get(namespace, "missing") is None
        assert backend.keys(namespace) == []

        backend.put(namespace, "key", "1")
        backend.put("short", "key", "2")
        assert backend.get(namespace, "key") == "1"
        assert sorted(backend.namespaces()) == sorted([namespace, "short"])
        assert all(len(p.name.encode("utf-8")) < 255 for p in tmp_path.iterdir())

        backend.delete_namespace(namespace)
        assert backend.get(namespace, "key") is None
        assert backend.namespaces() == ["short"]

    def test_long_namespaces_sharing_a_prefix_stay_separate(self, tmp_path):
        backend = FileNamespaceBackend(tmp_path)
        first, second = "x" * 300 + "a", "x" * 300 + "b"
        backend.put(first, "key", "1")
        backend.put(second, "key", "2")
        assert backend.get(first, "key") == "1"
        assert backend.get(second, "key") == "2"
        assert sorted(backend.namespaces()) == sorted([first, second])

    def test_last_key_removal_deletes_file(self, tmp_path):
        backend = FileNamespaceBackend(tmp_path)
        backend.put("settings", "theme", '"dark"')
        backend.remove("settings", "theme")
        assert not (tmp_path / "settings.json").exists()

    def test_invalid_file_reads_as_empty(self, tmp_path):
        (tmp_path / "broken.json").write_text("{oops", encoding="utf-8")
        (tmp_path / "array.json").write_text("[1, 2]", encoding="utf-8")
        (tmp_path / "flat.json").write_text('{"key": "1"}', encoding="utf-8")
        backend = FileNamespaceBackend(tmp_path)
        assert backend.keys("broken") == []
        assert backend.get("array", "0") is None
        assert backend.get("flat", "key") is None
        assert backend.namespaces() == []

        backend.put("broken", "key", "1")
        assert backend.keys("broken") == ["key"]

    def test_non_json_files_are_ignored(self, tmp_path):
        (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
        backend = FileNamespaceBackend(tmp_path)
        assert backend.namespaces() == []

    def test_data_survives_new_instance(self, tmp_path):
        FileNamespaceBackend(tmp_path).put("ns", "key", "1")
        assert FileNamespaceBackend(tmp_path).get("ns", "key") == "1"

    def test_unusable_directory_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(BackendError):
            FileNamespaceBackend(blocker / "sub")

    def test_lock_registry_reuses_locks(self, tmp_path):
        registry = PathLockRegistry()
        assert registry.lock_for(tmp_path / "a.json") is registry.lock_for(
            tmp_path / "a.json"
        )
        assert registry.lock_for(tmp_path / "a.json") is not registry.lock_for(
            tmp_path / "b.json"
        )


class TestPersistentNamespaceBackend:
    def test_data_survives_new_instance(self, tmp_path):
        location = f"sqlite:///{tmp_path / 'kv.db'}"
        PersistentNamespaceBackend(location).put("ns", "key", "1")
        assert PersistentNamespaceBackend(location).get("ns", "key") == "1"

    def test_concurrent_first_writes_to_one_field(self, tmp_path):
        location = f"sqlite:///{tmp_path / 'kv.db'}"
        first = PersistentNamespaceBackend(location)
        second = PersistentNamespaceBackend(location)
        interleaved = []

        # The second writer lands its row just before the first writer's insert
        @event.listens_for(first.engine, "before_cursor_execute")
        def write_from_second(conn, cursor, statement, parameters, context, executemany):
            if not interleaved and statement.lstrip().upper().startswith("INSERT"):
                interleaved.append(statement)
                second.put("doc", "field", '"from-second"')

        first.put("doc", "field", '"from-first"')

        assert interleaved
        assert second.get("doc", "field") == '"from-first"'
        assert first.keys("doc") == ["field"]

    def test_put_overwrites_in_place(self, tmp_path):
        backend = PersistentNamespaceBackend(f"sqlite:///{tmp_path / 'kv.db'}")
        backend.put("doc", "field", "1")
        backend.put("doc", "field", "2")
        assert backend.get("doc", "field") == "2"
        assert backend.keys("doc") == ["field"]

    def test_requires_location(self):
        with pytest.raises(ValueError):
            PersistentNamespaceBackend("")

    def test_invalid_location_raises_backend_error(self):
        with pytest.raises(BackendError):
            PersistentNamespaceBackend("nosuchdialect://localhost/db")


if __name__ == "__main__":
    pytest.main()
