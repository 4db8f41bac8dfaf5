"""Tests for durable storage backends."""
import json
from pathlib import Path

import pytest

from core.storage import FileStorage, MemoryStorage, StorageError


class TestMemoryStorage:
    """Tests for MemoryStorage."""

    def test__get__missing_key(self) -> None:
        """Missing keys read as None."""
        assert MemoryStorage().get("missing") is None

    def test__set_get_delete(self) -> None:
        """Values can be set, read and deleted."""
        storage = MemoryStorage()
        storage.set("k", "v")
        assert storage.get("k") == "v"

        storage.delete("k")
        assert storage.get("k") is None

    def test__delete__missing_key_is_noop(self) -> None:
        """Deleting a missing key doesn't raise."""
        MemoryStorage().delete("missing")

    def test__initial_values(self) -> None:
        """Initial contents are copied in."""
        initial = {"k": "v"}
        storage = MemoryStorage(initial)
        initial["k"] = "changed"

        assert storage.get("k") == "v"


class TestFileStorage:
    """Tests for FileStorage."""

    def test__get__missing_file(self, tmp_path: Path) -> None:
        """A file that doesn't exist yet reads as empty."""
        storage = FileStorage(tmp_path / "storage.json")

        assert storage.get("auth_token") is None

    def test__set__creates_parent_dirs_and_persists(self, tmp_path: Path) -> None:
        """Writes create the directory and survive a new instance."""
        path = tmp_path / "nested" / "dir" / "storage.json"
        FileStorage(path).set("auth_token", "abc")

        assert json.loads(path.read_text()) == {"auth_token": "abc"}
        assert FileStorage(path).get("auth_token") == "abc"

    def test__set__keeps_other_keys(self, tmp_path: Path) -> None:
        """Writing one key leaves the others alone."""
        storage = FileStorage(tmp_path / "storage.json")
        storage.set("a", "1")
        storage.set("b", "2")

        assert storage.get("a") == "1"
        assert storage.get("b") == "2"

    def test__delete__removes_key(self, tmp_path: Path) -> None:
        """Deleted keys are gone from disk."""
        path = tmp_path / "storage.json"
        storage = FileStorage(path)
        storage.set("a", "1")
        storage.set("b", "2")

        storage.delete("a")

        assert json.loads(path.read_text()) == {"b": "2"}

    def test__delete__missing_key_does_not_create_file(self, tmp_path: Path) -> None:
        """Deleting from an empty store leaves no file behind."""
        path = tmp_path / "storage.json"
        FileStorage(path).delete("a")

        assert not path.exists()

    def test__corrupt_file_reads_as_empty(self, tmp_path: Path) -> None:
        """Invalid JSON is ignored instead of raising."""
        path = tmp_path / "storage.json"
        path.write_text("{broken")

        assert FileStorage(path).get("a") is None

    def test__non_object_file_reads_as_empty(self, tmp_path: Path) -> None:
        """A JSON value that isn't an object is ignored."""
        path = tmp_path / "storage.json"
        path.write_text("[1, 2]")

        assert FileStorage(path).get("a") is None

    def test__unreadable_path_raises_storage_error(self, tmp_path: Path) -> None:
        """A path that can't be read as a file raises StorageError."""
        directory = tmp_path / "is_a_dir"
        directory.mkdir()

        with pytest.raises(StorageError):
            FileStorage(directory).get("a")
