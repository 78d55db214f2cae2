"""
library_lending.py

Borrow and return rules over a RecordStore.

The engine keeps each Book's availability flag in lock-step with the ledger:
a book is unavailable exactly while an open Transaction exists for it. It
never re-derives availability from the ledger, so every mutation here must
touch both sides or neither.
"""

from __future__ import annotations
import datetime
import logging
from typing import Callable, Dict, List, Optional

from library_errors import BookNotFound, BookUnavailable, InconsistentState, NoOpenLoan
from library_records import Book, RecordStore, Transaction, User, same_id

logger = logging.getLogger("LibrarySystem.lending")


class LendingEngine:
    """
    Borrow/return operations and read-only listings for one session.

    Args:
        store: a loaded RecordStore.
        today: callable returning the date stamped on borrows and returns.
    """

    def __init__(self, store: RecordStore, today: Callable[[], datetime.date] = datetime.date.today):
        self.store = store
        self.today = today

    # ---------------- Core operations ----------------
    def borrow(self, book_id: str, user_id: str) -> Transaction:
        """
        Lend a book to a user.

        Raises BookNotFound if no book id matches (case-insensitive) and
        BookUnavailable if the book is already out; neither touches the store.
        On success the book is marked unavailable and a new open Transaction is
        appended and returned.
        """
        book = self.store.find_book(book_id)
        if book is None:
            logger.debug("Borrow refused, unknown book %s", book_id)
            raise BookNotFound(book_id)
        if not book.available:
            logger.debug("Borrow refused, book %s already out", book.book_id)
            raise BookUnavailable(book.book_id)

        transaction = Transaction(
            transaction_id=self.store.next_transaction_id(),
            user_id=user_id,
            book_id=book.book_id,
            date_borrowed=self.today(),
        )
        book.available = False
        self.store.append_transaction(transaction)
        logger.info("Borrowed %s to %s (%s)", book.book_id, user_id, transaction.transaction_id)
        return transaction

    def return_book(self, book_id: str, user_id: str) -> Transaction:
        """
        Close the user's earliest open loan of a book.

        Scans the ledger in storage order. Raises NoOpenLoan when the user has no
        open Transaction for the book, and InconsistentState if the loan exists
        but its book is missing from the catalog.
        """
        for transaction in self.store.transactions:
            if (transaction.user_id == user_id
                    and same_id(transaction.book_id, book_id)
                    and transaction.is_open):
                break
        else:
            logger.debug("Return refused, %s has no open loan of %s", user_id, book_id)
            raise NoOpenLoan(book_id, user_id)

        book = self.store.find_book(transaction.book_id)
        if book is None:
            logger.warning("Open loan %s refers to missing book %s",
                           transaction.transaction_id, transaction.book_id)
            raise InconsistentState(
                f"Loan {transaction.transaction_id} refers to unknown book {transaction.book_id}.")

        transaction.close(self.today())
        book.available = True
        logger.info("Book %s returned by %s (%s)", book.book_id, user_id, transaction.transaction_id)
        return transaction

    # ---------------- Reports / Queries ----------------
    def list_books(self) -> List[Book]:
        return list(self.store.books)

    def list_transactions(self) -> List[Transaction]:
        """Full ledger in storage order. Callers gate this to administrators."""
        return list(self.store.transactions)

    def list_users(self) -> List[User]:
        return list(self.store.users)

    def open_loans(self, user_id: Optional[str] = None) -> List[Transaction]:
        return [t for t in self.store.transactions
                if t.is_open and (user_id is None or t.user_id == user_id)]

    def inventory_summary(self) -> Dict[str, int]:
        """
        Count the catalog by availability.

        Returns a dict with keys total, available and on_loan.
        """
        df = self.store.books_frame()
        available = int(df["available"].sum())
        return {"total": len(df), "available": available, "on_loan": len(df) - available}
