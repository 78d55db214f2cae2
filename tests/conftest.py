import datetime

import pytest

from library_lending import LendingEngine
from library_records import RecordStore

TODAY = datetime.date(2024, 3, 15)

USERS = (
    "U1,alice,secret,admin\n"
    "U2,bob,hunter2,member\n"
)
BOOKS = (
    "B1,Dune,Frank Herbert,true\n"
    "B2,Emma,Jane Austen,false\n"
    "B3,Ulysses,James Joyce,true\n"
)
TRANSACTIONS = "T001,U2,B2,2024-03-01,null\n"


@pytest.fixture
def data_dir(tmp_path):
    """A data directory holding a small but consistent set of record files."""
    (tmp_path / "users.txt").write_text(USERS)
    (tmp_path / "books.txt").write_text(BOOKS)
    (tmp_path / "transactions.txt").write_text(TRANSACTIONS)
    return tmp_path


@pytest.fixture
def store(data_dir):
    s = RecordStore(data_dir)
    s.load()
    return s


@pytest.fixture
def engine(store):
    return LendingEngine(store, today=lambda: TODAY)
