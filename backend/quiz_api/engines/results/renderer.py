"""Results document renderer.

Rendering happens in two pure steps: ``build_layout`` turns a submission and
its grouped answers into pages of positioned text lines, and ``to_pdf`` draws
that layout with ReportLab. The canvas is created with ``invariant=1`` so the
same layout always yields the same bytes.

Text is set in the bundled DejaVu Sans TrueType faces, embedded as subsets, so
names and answers outside Latin-1 keep their glyphs. Characters DejaVu does not
cover (CJK) are drawn as separate runs in ReportLab's built-in
``HeiseiKakuGo-W5`` CID font.
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from ...errors import RenderError
from ...models import GroupedAnswers, Submission
from .catalog import QuestionCatalog

logger = logging.getLogger(__name__)

FONT_DIR = Path(__file__).resolve().parents[2] / "data" / "fonts"
BODY_FONT = "DejaVuSans"
BOLD_FONT = "DejaVuSans-Bold"
FALLBACK_FONT = "HeiseiKakuGo-W5"
_FONT_FILES = {BODY_FONT: "DejaVuSans.ttf", BOLD_FONT: "DejaVuSans-Bold.ttf"}


def register_fonts() -> None:
    registered = set(pdfmetrics.getRegisteredFontNames())
    for name, filename in _FONT_FILES.items():
        if name not in registered:
            pdfmetrics.registerFont(TTFont(name, str(FONT_DIR / filename)))
    if FALLBACK_FONT not in registered:
        pdfmetrics.registerFont(UnicodeCIDFont(FALLBACK_FONT))


register_fonts()

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 56.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN

TITLE = "Quiz Results"
CLOSING_LINE = "Thank you for participating in the quiz!"
FOLLOW_UP_MARKER = "Follow-up:"


@dataclass(frozen=True)
class LineStyle:
    font: str
    size: float
    leading: float
    color: str = "#333333"
    space_before: float = 0.0
    centered: bool = False


STYLES: dict[str, LineStyle] = {
    "title": LineStyle(BOLD_FONT, 20, 28, color="#4CAF50"),
    "field": LineStyle(BODY_FONT, 12, 18),
    "chapter": LineStyle(BOLD_FONT, 15, 22, space_before=14),
    "answer": LineStyle(BODY_FONT, 11, 16),
    "follow_up": LineStyle(BODY_FONT, 11, 16),
    "footer": LineStyle(BODY_FONT, 11, 18, color="#777777", space_before=28, centered=True),
}
MARKER_STYLE = LineStyle(BOLD_FONT, 11, 16, color="#FF0000")


def split_runs(text: str, font: str) -> list[tuple[str, str]]:
    """Split ``text`` into ``(run, font)`` pieces, moving glyphs ``font`` lacks to the CJK font."""
    glyphs = pdfmetrics.getFont(font).face.charToGlyph
    runs: list[tuple[str, str]] = []
    for char in text:
        run_font = font if char.isspace() or ord(char) in glyphs else FALLBACK_FONT
        if runs and runs[-1][1] == run_font:
            runs[-1] = (runs[-1][0] + char, run_font)
        else:
            runs.append((char, run_font))
    return runs


def text_width(text: str, font: str, size: float) -> float:
    return sum(stringWidth(run, run_font, size) for run, run_font in split_runs(text, font))


def wrap_text(text: str, font: str, size: float, width: float) -> list[str]:
    """Greedy word wrap; words wider than ``width`` (unspaced CJK text) break between characters."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if text_width(candidate, font, size) <= width:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = ""
        for char in word:
            if current and text_width(current + char, font, size) > width:
                lines.append(current)
                current = ""
            current += char
    if current:
        lines.append(current)
    return lines


MARKER_WIDTH = text_width(f"{FOLLOW_UP_MARKER} ", MARKER_STYLE.font, MARKER_STYLE.size)


@dataclass(frozen=True)
class TextLine:
    text: str
    style: str
    y: float
    indent: float = 0.0
    # Only the first wrapped piece of a follow-up answer carries the marker.
    marker: str | None = None


@dataclass
class ResultsPage:
    lines: list[TextLine] = field(default_factory=list)


@dataclass
class ResultsLayout:
    pages: list[ResultsPage] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def lines(self) -> list[TextLine]:
        return [line for page in self.pages for line in page.lines]

    def texts(self) -> list[str]:
        return [line.text for line in self.lines()]


def format_points(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_answer_line(question_name: str, selected_answer: str, points: int | float) -> str:
    return f"{question_name}: {selected_answer} ({format_points(points)} points)"


class _LayoutBuilder:
    def __init__(self) -> None:
        self.layout = ResultsLayout()
        self._page: ResultsPage | None = None
        self._y = 0.0

    def _new_page(self) -> None:
        self._page = ResultsPage()
        self.layout.pages.append(self._page)
        self._y = PAGE_HEIGHT - MARGIN

    def add(self, text: str, style_name: str, *, follow_up: bool = False) -> None:
        style = STYLES[style_name]
        indent = MARKER_WIDTH if follow_up else 0.0
        pieces = wrap_text(text, style.font, style.size, CONTENT_WIDTH - indent) or [""]

        if self._page is None:
            self._new_page()
        elif self._page.lines:
            self._y -= style.space_before

        for position, piece in enumerate(pieces):
            if self._y - style.leading < MARGIN:
                self._new_page()
            self._y -= style.leading
            marker = FOLLOW_UP_MARKER if follow_up and position == 0 else None
            self._page.lines.append(TextLine(piece, style_name, self._y, indent, marker))


def build_layout(submission: Submission, grouped: GroupedAnswers, catalog: QuestionCatalog) -> ResultsLayout:
    builder = _LayoutBuilder()
    builder.add(TITLE, "title")
    builder.add(f"Name: {submission.user_name}", "field")
    builder.add(f"Sur Name: {submission.user_surname}", "field")
    builder.add(f"Email: {submission.user_email}", "field")
    builder.add(f"Total Points: {format_points(submission.total_points)}", "field")

    for chapter_name, answers in grouped.items():
        builder.add(chapter_name, "chapter")
        for answer in answers:
            question = catalog.find_by_text(answer.question_name)
            follow_up = bool(question and question.follow_up)
            builder.add(
                format_answer_line(answer.question_name, answer.selected_answer, answer.points),
                "follow_up" if follow_up else "answer",
                follow_up=follow_up,
            )

    builder.add(CLOSING_LINE, "footer")
    return builder.layout


def _draw_text(pdf: canvas.Canvas, x: float, y: float, text: str, style: LineStyle) -> None:
    pdf.setFillColor(HexColor(style.color))
    for run, run_font in split_runs(text, style.font):
        pdf.setFont(run_font, style.size)
        pdf.drawString(x, y, run)
        x += stringWidth(run, run_font, style.size)


def to_pdf(layout: ResultsLayout) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4, invariant=1, pageCompression=0)
    pdf.setTitle(TITLE)

    for page in layout.pages:
        for line in page.lines:
            style = STYLES[line.style]
            if line.marker:
                _draw_text(pdf, MARGIN, line.y, line.marker, MARKER_STYLE)

            if style.centered:
                x = (PAGE_WIDTH - text_width(line.text, style.font, style.size)) / 2
            else:
                x = MARGIN + line.indent
            _draw_text(pdf, x, line.y, line.text, style)
        pdf.showPage()

    pdf.save()
    return buffer.getvalue()


class ResultRenderer:
    def __init__(self, catalog: QuestionCatalog):
        self.catalog = catalog

    def render(self, submission: Submission, grouped: GroupedAnswers) -> bytes:
        try:
            layout = build_layout(submission, grouped, self.catalog)
            document = to_pdf(layout)
        except Exception as exc:
            raise RenderError(f"Could not render results document: {exc}") from exc

        logger.debug("Rendered %d page(s), %d bytes", layout.page_count, len(document))
        return document
