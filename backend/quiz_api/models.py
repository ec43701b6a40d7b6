from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Answer(CamelModel):
    question_name: str
    selected_answer: str
    points: int | float


class Submission(CamelModel):
    user_name: str
    user_surname: str
    user_email: str
    answers: list[Answer] = Field(default_factory=list)
    # Client-supplied; not recomputed from answers.
    total_points: int | float
    document_url: str | None = None
    id: str | None = None
    created_at: str | None = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


GroupedAnswers = dict[str, list[Answer]]
