"""Question catalog: the read-only question dataset loaded once at startup.

The dataset is a JSON array of objects with ``questionText``, a chapter name
(``chName`` in the original export, ``chapterName`` accepted too) and an
optional ``followUp`` flag.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator

from ...errors import CatalogError

logger = logging.getLogger(__name__)

_CHAPTER_KEYS = ("chName", "chapterName")


@dataclass(frozen=True)
class Question:
    question_text: str
    chapter_name: str
    follow_up: bool = False


class QuestionCatalog:
    def __init__(self, questions: Iterable[Question]):
        self._questions: tuple[Question, ...] = tuple(questions)
        index: dict[str, Question] = {}
        for question in self._questions:
            # Duplicates stay in the sequence; lookups resolve to the first one.
            index.setdefault(question.question_text, question)
        self._index = index

    def find_by_text(self, text: str) -> Question | None:
        return self._index.get(text)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)


def _parse_question(item: Any, position: int) -> Question:
    if not isinstance(item, dict):
        raise CatalogError(f"Question #{position} is not an object")

    text = item.get("questionText")
    if not isinstance(text, str) or not text:
        raise CatalogError(f"Question #{position} has no questionText")

    chapter = next(
        (item[key] for key in _CHAPTER_KEYS if isinstance(item.get(key), str) and item[key]),
        None,
    )
    if chapter is None:
        raise CatalogError(f"Question {text!r} has no chapter name")

    return Question(question_text=text, chapter_name=chapter, follow_up=bool(item.get("followUp", False)))


def build_catalog(raw: Any) -> QuestionCatalog:
    if not isinstance(raw, list):
        raise CatalogError("Question dataset must be a JSON array")
    return QuestionCatalog(_parse_question(item, position) for position, item in enumerate(raw))


def load_catalog(path: str | Path) -> QuestionCatalog:
    target = Path(path)
    try:
        raw = json.loads(target.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Could not read question dataset {target}: {exc}") from exc

    catalog = build_catalog(raw)
    logger.info("Loaded %d questions from %s", len(catalog), target)
    return catalog
