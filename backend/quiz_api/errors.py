"""Error taxonomy shared by the submission pipeline and its collaborators."""


class QuizResultsError(Exception):
    """Base class for failures raised while handling a quiz submission."""

    code = "quiz_results_error"


class CatalogError(QuizResultsError):
    """Raised when the question dataset cannot be loaded."""

    code = "catalog_invalid"


class UnknownQuestionError(QuizResultsError):
    """Raised when an answer names a question missing from the catalog."""

    code = "unknown_question"

    def __init__(self, question_name: str):
        super().__init__(f"Unknown question: {question_name!r}")
        self.question_name = question_name


class RenderError(QuizResultsError):
    """Raised when the results document cannot be generated."""

    code = "render_failed"


class UploadError(QuizResultsError):
    """Raised when the blob store rejects or fails an upload."""

    code = "upload_failed"


class PersistenceError(QuizResultsError):
    """Raised when a submission record cannot be written or read."""

    code = "persistence_failed"


class NotificationError(QuizResultsError):
    """Raised when the results email cannot be sent."""

    code = "notification_failed"
