"""Quiz results engines: catalog lookup, grouping, rendering and the submission pipeline."""

from .catalog import Question, QuestionCatalog, load_catalog
from .grouper import group_answers
from .pipeline import PipelineState, SubmissionPipeline, build_document_name
from .renderer import ResultRenderer, build_layout, to_pdf

__all__ = [
    "Question",
    "QuestionCatalog",
    "load_catalog",
    "group_answers",
    "ResultRenderer",
    "build_layout",
    "to_pdf",
    "PipelineState",
    "SubmissionPipeline",
    "build_document_name",
]
