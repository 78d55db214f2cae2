"""
library_records.py

Data model and flat-file record store for the library lending tracker.

Books, users and transactions are kept as plain in-memory lists of
dataclasses. They are read once at startup from comma-delimited text files
(no header row) and written back once at exit. pandas is only used at the
file boundary and for read-only reporting frames; the lending rules operate
on the dataclasses directly.
"""

from __future__ import annotations
import csv
import datetime
import enum
import logging
import pathlib
from dataclasses import dataclass
from typing import List, Optional, Union

import pandas as pd

from library_errors import StoreLoadError, StoreSaveError

# Configuration
DEFAULT_DATA_DIR = pathlib.Path(".")
USERS_FILE = "users.txt"
BOOKS_FILE = "books.txt"
TRANSACTIONS_FILE = "transactions.txt"

TRANSACTION_PREFIX = "T"
OPEN_SENTINEL = "null"
ADMIN_ROLE = "admin"
# A character no record can hold: lines are read whole by splitting on it,
# and it stands in as quotechar so `"` in a title is plain text on write.
FIELD_GUARD = "\x1f"

USER_COLUMNS = ["id", "name", "password", "role"]
BOOK_COLUMNS = ["id", "title", "author", "available"]
TRANSACTION_COLUMNS = ["transaction_id", "user_id", "book_id", "date_borrowed", "date_returned"]

logger = logging.getLogger("LibrarySystem.records")


def same_id(left: str, right: str) -> bool:
    """Identifiers compare case-insensitively everywhere in the system."""
    return left.lower() == right.lower()


class Role(enum.Enum):
    ORDINARY = "user"
    ADMINISTRATOR = "admin"

    @classmethod
    def from_text(cls, text: str) -> "Role":
        return cls.ADMINISTRATOR if text.strip().lower() == ADMIN_ROLE else cls.ORDINARY


@dataclass
class Book:
    book_id: str
    title: str
    author: str
    available: bool = True

    @classmethod
    def from_record(cls, row) -> "Book":
        return cls(row.id, row.title, row.author, row.available.lower() == "true")

    def to_record(self) -> List[str]:
        return [self.book_id, self.title, self.author, "true" if self.available else "false"]


@dataclass(frozen=True)
class User:
    user_id: str
    name: str
    password: str
    role: Role = Role.ORDINARY
    role_text: str = ""

    @property
    def is_administrator(self) -> bool:
        return self.role is Role.ADMINISTRATOR

    @property
    def role_label(self) -> str:
        """The role as written in users.txt."""
        return self.role_text or self.role.value

    @classmethod
    def from_record(cls, row) -> "User":
        return cls(row.id, row.name, row.password, Role.from_text(row.role), row.role)


@dataclass
class Transaction:
    """
    One borrow of one book by one user.

    `date_returned` is None while the loan is open. The "null" text used for
    open loans in transactions.txt never appears outside this module.
    """
    transaction_id: str
    user_id: str
    book_id: str
    date_borrowed: datetime.date
    date_returned: Optional[datetime.date] = None

    @property
    def is_open(self) -> bool:
        return self.date_returned is None

    def close(self, when: datetime.date) -> None:
        self.date_returned = when

    @classmethod
    def from_record(cls, row) -> "Transaction":
        returned = None if row.date_returned == OPEN_SENTINEL else datetime.date.fromisoformat(row.date_returned)
        return cls(row.transaction_id, row.user_id, row.book_id,
                   datetime.date.fromisoformat(row.date_borrowed), returned)

    def to_record(self) -> List[str]:
        returned = OPEN_SENTINEL if self.date_returned is None else self.date_returned.isoformat()
        return [self.transaction_id, self.user_id, self.book_id, self.date_borrowed.isoformat(), returned]


class RecordStore:
    """
    Owns the books, users and transactions lists and the transaction id counter.

    Load populates the lists in file order; save writes books and transactions
    back in their current in-memory order. users.txt is read but never written.
    """

    def __init__(self,
                 data_dir: Union[str, pathlib.Path] = DEFAULT_DATA_DIR,
                 users_file: str = USERS_FILE,
                 books_file: str = BOOKS_FILE,
                 transactions_file: str = TRANSACTIONS_FILE):
        """
        Args:
            data_dir: directory holding the three record files.
            users_file: file name of the credential list.
            books_file: file name of the catalog.
            transactions_file: file name of the borrow/return ledger.
        """
        self.data_dir = pathlib.Path(data_dir)
        self.users_path = self.data_dir / users_file
        self.books_path = self.data_dir / books_file
        self.transactions_path = self.data_dir / transactions_file

        self.books: List[Book] = []
        self.users: List[User] = []
        self.transactions: List[Transaction] = []
        self._transaction_counter = 0

    # ---------------- Loading ----------------
    def load(self) -> None:
        """
        Read all three files, replacing whatever is in memory.

        A missing transactions file is an empty ledger. Any other missing file,
        unreadable file or malformed line raises StoreLoadError.
        """
        users_df = self._read_frame(self.users_path, USER_COLUMNS, required=True)
        books_df = self._read_frame(self.books_path, BOOK_COLUMNS, required=True)
        tx_df = self._read_frame(self.transactions_path, TRANSACTION_COLUMNS, required=False)

        self.users = self._parse_frame(self.users_path, users_df, User.from_record)
        self.books = self._parse_frame(self.books_path, books_df, Book.from_record)
        self.transactions = self._parse_frame(self.transactions_path, tx_df, Transaction.from_record)

        self._resume_transaction_counter()
        logger.info("Loaded %d users, %d books, %d transactions",
                    len(self.users), len(self.books), len(self.transactions))

    def _read_frame(self, path: pathlib.Path, columns: List[str], required: bool) -> pd.DataFrame:
        """
        Read one record file into a DataFrame of strings, one column per field.

        Each line is read whole (quotes are literal text, never quoting) and then
        split on commas. Trailing empty fields do not count, so every line must
        carry exactly len(columns) fields; anything else, blank lines included,
        raises StoreLoadError naming the line.
        """
        if not path.exists():
            if required:
                raise StoreLoadError(f"{path} (No such file or directory)")
            logger.warning("%s not found (starting empty)", path)
            return pd.DataFrame(columns=columns)
        try:
            lines = pd.read_csv(path, header=None, names=["line"], sep=FIELD_GUARD,
                                quoting=csv.QUOTE_NONE, dtype=str, na_filter=False,
                                skip_blank_lines=False, encoding="utf-8")["line"]
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=columns)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as exc:
            raise StoreLoadError(f"{path}: {exc}") from exc

        fields = lines.str.rstrip(",").str.split(",")
        counts = fields.str.len()
        malformed = counts != len(columns)
        if malformed.any():
            pos = int(malformed.to_numpy().nonzero()[0][0])
            raise StoreLoadError(
                f"{path}: line {pos + 1} has {counts.iloc[pos]} fields, expected {len(columns)}")
        return pd.DataFrame(fields.tolist(), columns=columns, dtype=str)

    @staticmethod
    def _parse_frame(path: pathlib.Path, df: pd.DataFrame, factory) -> list:
        try:
            return [factory(row) for row in df.itertuples(index=False)]
        except ValueError as exc:
            raise StoreLoadError(f"{path}: {exc}") from exc

    def _resume_transaction_counter(self) -> None:
        # Resume after the highest numbered id so reloaded ledgers never reuse one.
        highest = len(self.transactions)
        for t in self.transactions:
            suffix = t.transaction_id[len(TRANSACTION_PREFIX):]
            if t.transaction_id.startswith(TRANSACTION_PREFIX) and suffix.isdigit():
                highest = max(highest, int(suffix))
        self._transaction_counter = highest

    # ---------------- Persisting ----------------
    def save(self) -> None:
        """
        Write books and transactions back to disk. Raises StoreSaveError.

        Fields are joined with bare commas and never quoted, so a field that
        itself contains a comma cannot be written; both files are checked
        before either is touched.
        """
        books_df = pd.DataFrame([b.to_record() for b in self.books], columns=BOOK_COLUMNS)
        tx_df = pd.DataFrame([t.to_record() for t in self.transactions], columns=TRANSACTION_COLUMNS)
        self._check_writable(self.books_path, books_df)
        self._check_writable(self.transactions_path, tx_df)

        self._write_frame(self.books_path, books_df)
        self._write_frame(self.transactions_path, tx_df)
        logger.info("Saved %d books and %d transactions to %s",
                    len(self.books), len(self.transactions), self.data_dir)

    @staticmethod
    def _check_writable(path: pathlib.Path, df: pd.DataFrame) -> None:
        for pos, record in enumerate(df.itertuples(index=False), start=1):
            if any("," in value for value in record):
                raise StoreSaveError(f"{path}: record {pos} ({record[0]}) contains a comma")

    def _write_frame(self, path: pathlib.Path, df: pd.DataFrame) -> None:
        # Fields are never quoted or escaped; commas were rejected above.
        try:
            df.to_csv(path, header=False, index=False, lineterminator="\n", encoding="utf-8",
                      quoting=csv.QUOTE_NONE, quotechar=FIELD_GUARD)
        except (OSError, csv.Error) as exc:
            raise StoreSaveError(f"{path}: {exc}") from exc

    # -------------- Lookups and mutation ----------------
    def find_book(self, book_id: str) -> Optional[Book]:
        """Linear, case-insensitive search by id. O(n) over the catalog."""
        for book in self.books:
            if same_id(book.book_id, book_id):
                return book
        return None

    def next_transaction_id(self) -> str:
        self._transaction_counter += 1
        return f"{TRANSACTION_PREFIX}{self._transaction_counter:03d}"

    def append_transaction(self, transaction: Transaction) -> None:
        self.transactions.append(transaction)

    # ---------------- Reporting ----------------
    def books_frame(self) -> pd.DataFrame:
        """Catalog as a DataFrame with a boolean `available` column."""
        return pd.DataFrame(
            [[b.book_id, b.title, b.author, b.available] for b in self.books],
            columns=BOOK_COLUMNS,
        ).astype({"available": bool})

    def transactions_frame(self) -> pd.DataFrame:
        """Ledger as a DataFrame; open loans have an empty `date_returned`."""
        return pd.DataFrame(
            [[t.transaction_id, t.user_id, t.book_id, t.date_borrowed, t.date_returned]
             for t in self.transactions],
            columns=TRANSACTION_COLUMNS,
        )
