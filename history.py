"""Translation history store backed by SQLite.

Records are keyed by an auto-incrementing id, so "most recent" is simply the
highest ids. A translation is stored once per (input, lang_in, lang_out).
"""
import os
import sqlite3
from typing import Optional, List
from pathlib import Path

from log import get_logger

logger = get_logger("wordmatch.history")

# --- Config ---
DB_PATH = Path(os.environ.get("WORDMATCH_DB", Path(__file__).parent / "wordmatch.db"))


class HistoryError(Exception):
    """Raised when the history database cannot be read or written."""


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


def get_db() -> sqlite3.Connection:
    conn = sqlite3.connect(str(DB_PATH))
    conn.row_factory = sqlite3.Row
    # SQLite's lower() only folds ASCII
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def init_history_db():
    conn = get_db()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS translations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            input TEXT NOT NULL,
            output TEXT NOT NULL,
            lang_in TEXT NOT NULL,
            lang_out TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_translations_input ON translations(input);
    """)
    conn.close()


def _row_to_dict(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "input": row["input"],
        "output": row["output"],
        "lang_in": row["lang_in"],
        "lang_out": row["lang_out"],
    }


def find_translation(input: str, lang_in: str, lang_out: str) -> Optional[int]:
    """Return the id of a stored translation with this exact input and language pair."""
    try:
        conn = get_db()
        try:
            row = conn.execute(
                "SELECT id FROM translations WHERE input = ? AND lang_in = ? AND lang_out = ? LIMIT 1",
                (input, lang_in, lang_out),
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise HistoryError(f"Error searching translation history: {e}") from e
    return row["id"] if row else None


def save_translation(input: str, output: str, lang_in: str, lang_out: str) -> Optional[int]:
    """Store a translation unless the same input and language pair already exists.

    Returns the new record id, or None when an identical entry was already stored.
    """
    existing = find_translation(input, lang_in, lang_out)
    if existing is not None:
        logger.info("Translation already stored", extra={
            "component": "history", "detail": f"{lang_in}->{lang_out}", "count": existing,
        })
        return None
    try:
        conn = get_db()
        try:
            cursor = conn.execute(
                "INSERT INTO translations (input, output, lang_in, lang_out) VALUES (?, ?, ?, ?)",
                (input, output, lang_in, lang_out),
            )
            conn.commit()
            new_id = cursor.lastrowid
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise HistoryError(f"Error storing history of input {input!r}: {e}") from e
    logger.info("Translation saved", extra={"component": "history", "count": new_id})
    return new_id


def load_history(n: int) -> List[dict]:
    """Load the n most recent translations, newest first."""
    try:
        conn = get_db()
        try:
            rows = conn.execute(
                "SELECT id, input, output, lang_in, lang_out FROM translations ORDER BY id DESC LIMIT ?",
                (n,),
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise HistoryError(f"Error loading documents from database: {e}") from e
    if len(rows) < n:
        logger.debug(f"database only contains {len(rows)} instead of {n}", extra={"component": "history"})
    return [_row_to_dict(r) for r in rows]


def clear_history() -> int:
    """Delete every stored translation. Returns the number of rows removed."""
    try:
        conn = get_db()
        try:
            cursor = conn.execute("DELETE FROM translations")
            conn.commit()
            deleted = cursor.rowcount
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise HistoryError(f"Error deleting documents from database: {e}") from e
    logger.info("History cleared", extra={"component": "history", "count": deleted})
    return deleted


def delete_translation(record_id: int) -> bool:
    try:
        conn = get_db()
        try:
            cursor = conn.execute("DELETE FROM translations WHERE id = ?", (record_id,))
            conn.commit()
            removed = cursor.rowcount > 0
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise HistoryError(f"Error removing document id={record_id}: {e}") from e
    return removed


def get_translation(input: str) -> Optional[dict]:
    """Return the first stored translation whose input matches exactly."""
    try:
        conn = get_db()
        try:
            row = conn.execute(
                "SELECT id, input, output, lang_in, lang_out FROM translations WHERE input = ? ORDER BY id LIMIT 1",
                (input,),
            ).fetchone()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise HistoryError(f"Failed to retrieve translation: {e}") from e
    return _row_to_dict(row) if row else None


def search_translations(text: str) -> List[dict]:
    """Case-insensitive substring search over stored inputs."""
    try:
        conn = get_db()
        try:
            rows = conn.execute(
                "SELECT id, input, output, lang_in, lang_out FROM translations "
                "WHERE instr(casefold(input), ?) > 0 ORDER BY id",
                (text.casefold(),),
            ).fetchall()
        finally:
            conn.close()
    except sqlite3.Error as e:
        raise HistoryError(f"Failed to search translations: {e}") from e
    return [_row_to_dict(r) for r in rows]
