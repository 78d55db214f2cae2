import datetime

import pytest

import library_system
from library_system import main


@pytest.fixture
def feed(monkeypatch):
    """Replace console input with a scripted list of lines, then EOF."""
    def _feed(*lines):
        pending = list(lines)

        def fake_input(prompt=""):
            if not pending:
                raise EOFError
            return pending.pop(0)

        monkeypatch.setattr("builtins.input", fake_input)
    return _feed


def test_three_failed_logins_exit_without_saving(data_dir, feed, capsys):
    books_before = (data_dir / "books.txt").read_text()
    feed("alice", "nope", "ALICE", "Secret", "mallory", "x")

    assert main(data_dir) == 1

    out = capsys.readouterr().out
    assert "Attempts left: 2" in out
    assert "Attempts left: 0" in out
    assert "Too many failed attempts. Exiting..." in out
    assert (data_dir / "books.txt").read_text() == books_before


def test_load_failure_exits(tmp_path, feed, capsys):
    feed()
    assert main(tmp_path) == 1
    assert "Error loading system:" in capsys.readouterr().out


def test_ordinary_user_borrows_and_saves_on_exit(data_dir, feed, capsys):
    feed("bob", "hunter2", "2", "b1", "4")

    assert main(data_dir) == 0

    out = capsys.readouterr().out
    assert "Login successful! Welcome, bob." in out
    assert "4. Exit" in out
    assert "Manage Users" not in out
    assert "Book borrowed successfully!" in out
    assert "All changes saved successfully. Goodbye!" in out

    assert "B1,Dune,Frank Herbert,false" in (data_dir / "books.txt").read_text()
    today = datetime.date.today().isoformat()
    assert (data_dir / "transactions.txt").read_text().splitlines()[-1] == f"T002,U2,B1,{today},null"


def test_errors_are_reported_and_menu_continues(data_dir, feed, capsys):
    feed("bob", "hunter2", "2", "B404", "2", "B2", "3", "B1", "9", "4")

    assert main(data_dir) == 0

    out = capsys.readouterr().out
    assert "Book not found." in out
    assert "Book not available." in out
    assert "No matching borrow record found." in out
    assert "Invalid choice." in out


def test_administrator_menu(data_dir, feed, capsys):
    feed("alice", "secret", "4", "5", "6", "3", "B2", "7")

    assert main(data_dir) == 0

    out = capsys.readouterr().out
    assert "7. Exit" in out
    assert "--- USERS ---" in out
    assert "U2 | bob | member" in out
    assert "Total: 3 | Available: 2 | On loan: 1" in out
    assert "T001 | User: U2 | Book: B2 | Borrowed: 2024-03-01 | Returned: Not returned" in out
    # alice does not hold B2
    assert "No matching borrow record found." in out


def test_end_of_input_at_menu_saves(data_dir, feed, capsys):
    feed("bob", "hunter2", "3", "B2")

    assert main(data_dir) == 0

    assert "All changes saved successfully. Goodbye!" in capsys.readouterr().out
    assert "B2,Emma,Jane Austen,true" in (data_dir / "books.txt").read_text()


def test_save_failure_is_reported(data_dir, feed, capsys, monkeypatch):
    def broken_save(self):
        raise library_system.StoreSaveError("disk full")

    monkeypatch.setattr(library_system.LibrarySystem, "save_state", broken_save)
    feed("bob", "hunter2", "4")

    assert main(data_dir) == 0
    assert "Error saving files: disk full" in capsys.readouterr().out
