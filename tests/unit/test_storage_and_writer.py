"""
Unit tests for the CSV writer, local storage disks and config loading.
"""

import io

import pytest

from reportable.core.config import ReportableConfig, load_config
from reportable.core.exceptions import StorageError
from reportable.exports.storage import LocalStorage
from reportable.exports.writer import CsvWriter


class TestCsvWriter:
    """Test header derivation and row ordering"""

    def test_header_uses_mapping_and_first_row_order(self):
        handle = io.StringIO()
        writer = CsvWriter(handle, {"id": "ID", "name": "Full Name"})

        writer.write_rows([{"id": 1, "name": "Alice", "role": "admin"}])
        writer.write_rows([{"role": "user", "name": "Bob", "id": 2}])

        assert handle.getvalue() == "ID,Full Name,role\n1,Alice,admin\n2,Bob,user\n"
        assert writer.headers() == ["ID", "Full Name", "role"]
        assert writer.rows_written == 2

    def test_none_is_written_as_empty_field(self):
        handle = io.StringIO()
        CsvWriter(handle).write_rows([{"id": 3, "email": None}])
        assert handle.getvalue() == "id,email\n3,\n"

    def test_values_are_quoted_when_needed(self):
        handle = io.StringIO()
        CsvWriter(handle).write_rows([{"name": "Smith, Jane"}])
        assert handle.getvalue() == 'name\n"Smith, Jane"\n'

    def test_empty_batch_writes_nothing(self):
        handle = io.StringIO()
        writer = CsvWriter(handle)
        assert writer.write_rows([]) == 0
        assert handle.getvalue() == ""
        assert writer.headers() == []


class TestLocalStorage:
    """Test local disks"""

    @pytest.fixture
    def storage(self, tmp_path):
        return LocalStorage(roots={"local": str(tmp_path / "local")})

    @pytest.fixture
    def source_file(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("id\n1\n", encoding="utf-8")
        return str(path)

    def test_put_file_creates_directories(self, storage, source_file, tmp_path):
        storage.put_file("local", "reports/2024/users.csv", source_file)

        assert storage.exists("local", "reports/2024/users.csv")
        assert storage.get("local", "reports/2024/users.csv") == "id\n1\n"
        assert not (tmp_path / "local" / "reports" / "2024" / ".users.csv.part").exists()

    def test_put_file_replaces_existing(self, storage, source_file, tmp_path):
        storage.put_file("local", "users.csv", source_file)
        other = tmp_path / "other.csv"
        other.write_text("id\n2\n", encoding="utf-8")

        storage.put_file("local", "users.csv", str(other))

        assert storage.get("local", "users.csv") == "id\n2\n"

    def test_make_directory(self, storage):
        storage.make_directory("local", "a/b")
        assert storage.exists("local", "a/b")

    def test_unknown_disk(self, storage, source_file):
        with pytest.raises(StorageError):
            storage.put_file("s3", "users.csv", source_file)

    def test_path_cannot_escape_root(self, storage):
        with pytest.raises(StorageError):
            storage.path("local", "../outside.csv")

    def test_missing_source_is_storage_error(self, storage, tmp_path):
        with pytest.raises(StorageError):
            storage.put_file("local", "users.csv", str(tmp_path / "missing.csv"))

    def test_roots_from_config(self, tmp_path):
        config = ReportableConfig(storage_root=str(tmp_path / "root"), disks={"archive": str(tmp_path / "arch")})
        storage = LocalStorage(config=config)
        assert set(storage.roots) == {"local", "archive"}


class TestConfig:
    """Test environment driven config"""

    def test_defaults(self, monkeypatch):
        for key in ("REPORTABLE_QUEUE", "REPORTABLE_CHUNK_SIZE", "REPORTABLE_DISK", "REPORTABLE_OUTPUT_PATH"):
            monkeypatch.delenv(key, raising=False)
        config = load_config()
        assert config.queue == "reports"
        assert config.chunk_size == 1000
        assert config.disk == "local"
        assert config.output_path == "reports"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("REPORTABLE_QUEUE", "exports")
        monkeypatch.setenv("REPORTABLE_CHUNK_SIZE", "250")
        monkeypatch.setenv("REPORTABLE_FILTER_GROUP", "f")
        monkeypatch.setenv("REPORTABLE_DISKS", "archive=/mnt/archive, bad, s3=/srv/s3")

        config = load_config()

        assert config.queue == "exports"
        assert config.chunk_size == 250
        assert config.filter_group == "f"
        assert config.disks == {"archive": "/mnt/archive", "s3": "/srv/s3"}

    def test_queue_connection(self, monkeypatch):
        monkeypatch.delenv("REPORTABLE_CONNECTION", raising=False)
        assert load_config().connection is None

        monkeypatch.setenv("REPORTABLE_CONNECTION", "")
        assert load_config().connection is None

        monkeypatch.setenv("REPORTABLE_CONNECTION", "redis://queue-host:6379/2")
        assert load_config().connection == "redis://queue-host:6379/2"

    def test_with_overrides(self):
        config = ReportableConfig().with_overrides(chunk_size=5)
        assert config.chunk_size == 5
        assert ReportableConfig().chunk_size == 1000
