#!/usr/bin/env python3
"""
library_system.py

Interactive entry point for the library lending tracker: loads the record
files, logs one user in and runs the text menu until they choose Exit.
"""

from __future__ import annotations
import logging
import pathlib
import sys
from typing import Callable, List, Optional, Tuple, Union

from library_access import MAX_LOGIN_ATTEMPTS, Session, authenticate
from library_errors import InvalidCredentials, LibraryError, StoreLoadError, StoreSaveError
from library_lending import LendingEngine
from library_records import DEFAULT_DATA_DIR, Book, RecordStore, Transaction, User

# Logging
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("LibrarySystem")


class LibrarySystem:
    """
    LibrarySystem ties the record store to the lending engine for one run.

    Records are read once by `load()` and written once by `save_state()`;
    in between every change goes through `engine`.
    """

    def __init__(self, data_dir: Union[str, pathlib.Path] = DEFAULT_DATA_DIR, **store_files):
        self.store = RecordStore(data_dir, **store_files)
        self.engine = LendingEngine(self.store)

    def load(self) -> None:
        self.store.load()

    def login(self, name: str, password: str) -> Session:
        return Session(authenticate(self.store.users, name, password))

    def save_state(self) -> None:
        """Persist books and transactions. users.txt is left untouched."""
        self.store.save()


# ---------------- CLI ----------------
def input_prompt(prompt: str, strip: bool = True) -> Optional[str]:
    """
    Wrapper around built-in input().

    Returns None on EOF or KeyboardInterrupt so callers can tell "no more
    input" apart from an empty line.
    """
    try:
        value = input(prompt)
    except (EOFError, KeyboardInterrupt):
        print()
        return None
    return value.strip() if strip else value


def format_book(book: Book) -> str:
    return f"{book.book_id} | {book.title} | {book.author} | {'Available' if book.available else 'Issued'}"


def format_user(user: User) -> str:
    return f"{user.user_id} | {user.name} | {user.role_label}"


def format_transaction(t: Transaction) -> str:
    returned = t.date_returned.isoformat() if t.date_returned else "Not returned"
    return (f"{t.transaction_id} | User: {t.user_id} | Book: {t.book_id} | "
            f"Borrowed: {t.date_borrowed.isoformat()} | Returned: {returned}")


def login(lib: LibrarySystem, attempts: int = MAX_LOGIN_ATTEMPTS) -> Optional[Session]:
    """
    Prompt for credentials until one pair is valid or `attempts` run out.

    Returns the Session, or None once every attempt has failed.
    """
    print("Welcome to the Library Management System")
    print("----------------------------------------")
    while attempts > 0:
        name = input_prompt("Username: ", strip=False) or ""
        password = input_prompt("Password: ", strip=False) or ""
        try:
            session = lib.login(name, password)
        except InvalidCredentials:
            attempts -= 1
            print(f"Invalid username or password. Attempts left: {attempts}")
            continue
        print(f"\nLogin successful! Welcome, {session.user.name}.")
        return session
    print("Too many failed attempts. Exiting...")
    return None


# ---------------- Menu actions ----------------
def view_books(lib: LibrarySystem, session: Session) -> None:
    print("\n--- BOOK LIST ---")
    for book in lib.engine.list_books():
        print(format_book(book))


def borrow_book(lib: LibrarySystem, session: Session) -> None:
    book_id = input_prompt("Enter Book ID: ") or ""
    lib.engine.borrow(book_id, session.user_id)
    print("Book borrowed successfully!")


def return_book(lib: LibrarySystem, session: Session) -> None:
    book_id = input_prompt("Enter Book ID to return: ") or ""
    lib.engine.return_book(book_id, session.user_id)
    print("Book returned successfully!")


def manage_users(lib: LibrarySystem, session: Session) -> None:
    print("\n--- USERS ---")
    for user in lib.engine.list_users():
        print(format_user(user))


def manage_books(lib: LibrarySystem, session: Session) -> None:
    print("\n--- BOOK MANAGEMENT ---")
    summary = lib.engine.inventory_summary()
    print(f"Total: {summary['total']} | Available: {summary['available']} | On loan: {summary['on_loan']}")
    for book in lib.engine.list_books():
        print(format_book(book))


def view_transactions(lib: LibrarySystem, session: Session) -> None:
    print("\n--- TRANSACTIONS ---")
    for t in lib.engine.list_transactions():
        print(format_transaction(t))


MenuAction = Callable[[LibrarySystem, Session], None]


def menu_options(session: Session) -> List[Tuple[str, Optional[MenuAction]]]:
    """Numbered menu entries for this session's role; the Exit entry has no action."""
    options: List[Tuple[str, Optional[MenuAction]]] = [
        ("View All Books", view_books),
        ("Borrow Book", borrow_book),
        ("Return Book", return_book),
    ]
    if session.is_administrator:
        options += [
            ("Manage Users", manage_users),
            ("Manage Books", manage_books),
            ("View Transactions", view_transactions),
        ]
    options.append(("Exit", None))
    return options


def print_menu(options: List[Tuple[str, Optional[MenuAction]]]) -> None:
    print("\n----- MAIN MENU -----")
    for number, (label, _) in enumerate(options, start=1):
        print(f"{number}. {label}")


def save_and_exit(lib: LibrarySystem) -> None:
    try:
        lib.save_state()
    except StoreSaveError as exc:
        logger.error("Save failed: %s", exc)
        print(f"Error saving files: {exc}")
        return
    print("All changes saved successfully. Goodbye!")


def cli_loop(lib: LibrarySystem, session: Session) -> None:
    """
    Interactive command loop for one logged-in session.

    Library errors raised by an action are printed and the menu is shown
    again. Exit (or end of input) saves and returns.
    """
    options = menu_options(session)
    while True:
        print_menu(options)
        choice = input_prompt("Enter choice: ")
        if choice is None:
            save_and_exit(lib)
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(options):
            print("Invalid choice.")
            continue
        _, action = options[int(choice) - 1]
        if action is None:
            save_and_exit(lib)
            return
        try:
            action(lib, session)
        except LibraryError as exc:
            print(exc)


def main(data_dir: Union[str, pathlib.Path] = DEFAULT_DATA_DIR) -> int:
    """
    Run one session against the record files in `data_dir`.

    Returns the process exit status: 0 after Exit, 1 when loading fails or
    every login attempt is used up.
    """
    lib = LibrarySystem(data_dir)
    try:
        lib.load()
    except StoreLoadError as exc:
        logger.error("Load failed: %s", exc)
        print(f"Error loading system: {exc}")
        return 1
    session = login(lib)
    if session is None:
        return 1
    cli_loop(lib, session)
    return 0


if __name__ == "__main__":
    sys.exit(main())
