"""
library_errors.py

Exceptions raised by the record store, the lending engine and access control.
The menu controller catches LibraryError and prints its message.
"""


class LibraryError(Exception):
    """Base class for every failure the menu renders as a one-line message."""


class InvalidCredentials(LibraryError):
    def __init__(self):
        super().__init__("Invalid username or password.")


class BookNotFound(LibraryError):
    def __init__(self, book_id: str):
        self.book_id = book_id
        super().__init__("Book not found.")


class BookUnavailable(LibraryError):
    def __init__(self, book_id: str):
        self.book_id = book_id
        super().__init__("Book not available.")


class NoOpenLoan(LibraryError):
    def __init__(self, book_id: str, user_id: str):
        self.book_id = book_id
        self.user_id = user_id
        super().__init__("No matching borrow record found.")


class InconsistentState(LibraryError):
    """An open loan points at a book that is not in the catalog."""


class StoreError(LibraryError):
    pass


class StoreLoadError(StoreError):
    pass


class StoreSaveError(StoreError):
    pass
