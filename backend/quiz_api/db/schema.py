from pathlib import Path

from .database import get_db

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS submissions (
    id TEXT PRIMARY KEY,
    user_name TEXT NOT NULL,
    user_surname TEXT NOT NULL,
    user_email TEXT NOT NULL,
    answers_json TEXT NOT NULL DEFAULT '[]',
    total_points NUMERIC NOT NULL DEFAULT 0,
    document_url TEXT,
    created_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""


def init_db(db_path: str | Path | None = None) -> None:
    conn = get_db(db_path)
    try:
        conn.executescript(SCHEMA_SQL)
        conn.commit()
    finally:
        conn.close()
