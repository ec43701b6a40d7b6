"""Quiz submission API router: submit answers and list stored submissions."""

import logging
import sqlite3

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ..clients.blob_storage import get_blob_store
from ..clients.mailer import get_notifier
from ..db.database import get_db
from ..db.submissions import SubmissionStore
from ..engines.results import QuestionCatalog, SubmissionPipeline
from ..errors import QuizResultsError
from ..models import Answer, Submission, CamelModel

router = APIRouter(prefix="/api", tags=["submissions"])
logger = logging.getLogger(__name__)

SUBMIT_SUCCESS_MESSAGE = "Quiz submitted successfully!"
SUBMIT_FAILURE_MESSAGE = "Failed to submit quiz."
LIST_FAILURE_MESSAGE = "Failed to retrieve submissions."


class SubmitUserDataRequest(CamelModel):
    user_name: str
    user_surname: str
    user_email: str
    answers: list[Answer]
    total_points: int | float


def db_conn():
    conn = get_db()
    try:
        yield conn
    finally:
        conn.close()


def get_catalog(request: Request) -> QuestionCatalog:
    return request.app.state.catalog


def get_store(db: sqlite3.Connection = Depends(db_conn)) -> SubmissionStore:
    return SubmissionStore(db)


def get_pipeline(
    catalog: QuestionCatalog = Depends(get_catalog),
    store: SubmissionStore = Depends(get_store),
) -> SubmissionPipeline:
    return SubmissionPipeline(catalog, store, get_blob_store(), get_notifier())


def _failure(message: str, code: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=500, headers={"X-Error-Code": code})


# ── Endpoints ─────────────────────────────────────────────────────────────

@router.post("/submitUserData")
async def submit_user_data(
    body: SubmitUserDataRequest,
    pipeline: SubmissionPipeline = Depends(get_pipeline),
):
    submission = Submission(**body.model_dump())
    try:
        stored = await pipeline.run(submission)
    except QuizResultsError as exc:
        return _failure(SUBMIT_FAILURE_MESSAGE, exc.code)
    except Exception:
        logger.exception("Error submitting data")
        return _failure(SUBMIT_FAILURE_MESSAGE, "internal_error")

    return {"message": SUBMIT_SUCCESS_MESSAGE, "data": stored.to_wire()}


@router.get("/getAllSubmissions")
def get_all_submissions(store: SubmissionStore = Depends(get_store)):
    try:
        submissions = store.list_all()
    except QuizResultsError as exc:
        logger.error("Error retrieving submissions: %s", exc)
        return _failure(LIST_FAILURE_MESSAGE, exc.code)
    except Exception:
        logger.exception("Error retrieving submissions")
        return _failure(LIST_FAILURE_MESSAGE, "internal_error")
    return [submission.to_wire() for submission in submissions]
