import os
import tempfile
import threading

import pytest

from domain.errors import RecordNotFoundError, StorageIOError
from domain.records import Transaction
from infrastructure.repositories import FileRecordRepository, RecordRepository
from storage import CsvStorage, JsonStorage
from storage.codecs import TransactionCodec


class TestRecordRepository:
    def test_repository_is_abstract(self):
        with pytest.raises(TypeError):
            RecordRepository()  # type: ignore


class TestFileRecordRepository:
    def setup_method(self):
        self.temp_file = tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".json")
        self.temp_file.close()
        os.unlink(self.temp_file.name)
        self.repo = FileRecordRepository(JsonStorage(TransactionCodec()), self.temp_file.name)

    def teardown_method(self):
        for path in (self.temp_file.name, f"{self.temp_file.name}.backup"):
            if os.path.exists(path):
                os.unlink(path)

    def test_save_and_load(self):
        tx = Transaction(date="2024-01-01", amount=10.0, category="Food")
        self.repo.save(tx)
        assert self.repo.load_all() == [tx]
        assert self.repo.get_by_id(tx.id).category == "Food"

    def test_get_by_id_missing_raises(self):
        with pytest.raises(RecordNotFoundError):
            self.repo.get_by_id("nope")

    def test_replace_keeps_position(self):
        first = Transaction(date="2024-01-01", amount=1.0)
        second = Transaction(date="2024-01-02", amount=2.0)
        self.repo.save(first)
        self.repo.save(second)
        assert self.repo.replace(first.with_amount(5.0))
        loaded = self.repo.load_all()
        assert [t.id for t in loaded] == [first.id, second.id]
        assert loaded[0].amount == 5.0

    def test_replace_and_delete_missing_return_false(self):
        self.repo.save(Transaction(date="2024-01-01", amount=1.0))
        with open(self.temp_file.name, "rb") as f:
            before = f.read()
        assert not self.repo.replace(Transaction(date="2024-01-01", amount=9.0))
        assert not self.repo.delete("missing-id")
        with open(self.temp_file.name, "rb") as f:
            assert f.read() == before

    def test_delete(self):
        tx = Transaction(date="2024-01-01", amount=1.0)
        self.repo.save(tx)
        assert self.repo.delete(tx.id)
        assert self.repo.load_all() == []

    def test_save_many_and_replace_all(self):
        items = [Transaction(date="2024-01-0%d" % day, amount=float(day)) for day in range(1, 4)]
        self.repo.save_many(items)
        assert len(self.repo.load_all()) == 3
        self.repo.replace_all(items[:1])
        assert self.repo.load_all() == items[:1]

    def test_backup_path(self):
        self.repo.save(Transaction(date="2024-01-01", amount=1.0))
        assert self.repo.backup()
        assert os.path.exists(f"{self.temp_file.name}.backup")


def test_concurrent_saves_are_not_lost(tmp_path) -> None:
    path = str(tmp_path / "transactions.csv")
    repo = FileRecordRepository(CsvStorage(TransactionCodec()), path)

    def worker(offset: int) -> None:
        for i in range(10):
            repo.save(Transaction(date="2024-01-01", amount=float(offset * 100 + i)))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(repo.load_all()) == 40


def test_save_failure_raises_storage_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    repo = FileRecordRepository(JsonStorage(TransactionCodec()), str(blocker / "t.json"))
    with pytest.raises(StorageIOError):
        repo.save(Transaction(date="2024-01-01", amount=1.0))
