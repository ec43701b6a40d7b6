from typing import Iterable

from ...errors import UnknownQuestionError
from ...models import Answer, GroupedAnswers
from .catalog import QuestionCatalog


def group_answers(answers: Iterable[Answer], catalog: QuestionCatalog) -> GroupedAnswers:
    """Partition answers by chapter, keeping submission order.

    Chapters appear in the order they are first seen and each chapter keeps its
    answers in their original relative order. An answer naming a question the
    catalog does not know aborts the whole grouping.
    """
    grouped: GroupedAnswers = {}
    for answer in answers:
        question = catalog.find_by_text(answer.question_name)
        if question is None:
            raise UnknownQuestionError(answer.question_name)
        grouped.setdefault(question.chapter_name, []).append(answer)
    return grouped
