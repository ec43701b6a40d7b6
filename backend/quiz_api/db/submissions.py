"""Submission store backed by the ``submissions`` SQLite table."""

import json
import logging
import sqlite3
from uuid import uuid4

from ..errors import PersistenceError
from ..models import Answer, Submission

logger = logging.getLogger(__name__)


def _row_to_submission(row: sqlite3.Row) -> Submission:
    item = dict(row)
    try:
        answers = json.loads(item.get("answers_json") or "[]")
    except json.JSONDecodeError:
        logger.warning("Submission %s has unreadable answers_json", item.get("id"))
        answers = []
    return Submission(
        id=item["id"],
        user_name=item["user_name"],
        user_surname=item["user_surname"],
        user_email=item["user_email"],
        answers=[Answer.model_validate(answer) for answer in answers if isinstance(answer, dict)],
        total_points=item["total_points"],
        document_url=item.get("document_url"),
        created_at=item.get("created_at"),
    )


class SubmissionStore:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def create(self, submission: Submission) -> str:
        """Persist a pending record (no document URL) and return its id."""
        submission_id = f"sub-{uuid4().hex[:12]}"
        answers_json = json.dumps([answer.model_dump(by_alias=True) for answer in submission.answers])
        try:
            self.conn.execute(
                """
                INSERT INTO submissions (id, user_name, user_surname, user_email, answers_json, total_points)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    submission_id,
                    submission.user_name,
                    submission.user_surname,
                    submission.user_email,
                    answers_json,
                    submission.total_points,
                ),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            self.conn.rollback()
            raise PersistenceError(f"Could not create submission: {exc}") from exc
        return submission_id

    def set_document_url(self, submission_id: str, url: str) -> None:
        """Attach the document URL; repeating the same URL is a no-op."""
        try:
            result = self.conn.execute(
                """
                UPDATE submissions
                SET document_url = ?
                WHERE id = ? AND (document_url IS NULL OR document_url = ?)
                """,
                (url, submission_id, url),
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            self.conn.rollback()
            raise PersistenceError(f"Could not update submission {submission_id}: {exc}") from exc

        if result.rowcount == 0:
            existing = self.get(submission_id)
            if existing is None:
                raise PersistenceError(f"Submission {submission_id} not found")
            raise PersistenceError(f"Submission {submission_id} already has a document URL")

    def get(self, submission_id: str) -> Submission | None:
        try:
            row = self.conn.execute("SELECT * FROM submissions WHERE id = ?", (submission_id,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not read submission {submission_id}: {exc}") from exc
        return _row_to_submission(row) if row is not None else None

    def list_all(self) -> list[Submission]:
        try:
            rows = self.conn.execute("SELECT * FROM submissions ORDER BY rowid").fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not list submissions: {exc}") from exc
        return [_row_to_submission(row) for row in rows]
