"""
Two-sheet workbook contract for bulk card editing.

"Flashcards": id, front, back, topics, explanation
"MCQ":        id, question, choiceA..choiceD, correct (letter), topics, explanation

Header matching is case-insensitive and goes through COLUMN_ALIASES, so the
accepted spellings for each field live in one place.
"""
from __future__ import annotations

import io
from collections.abc import Iterable, Mapping
from typing import Any

from openpyxl import Workbook, load_workbook

from cardcue.models.card import (
    Card,
    CardType,
    Flashcard,
    McqCard,
    hydrate,
    letter_to_index,
    split_topics,
)

FLASHCARD_SHEET = "Flashcards"
MCQ_SHEET = "MCQ"

FLASHCARD_COLUMNS = ["id", "front", "back", "topics", "explanation"]
MCQ_COLUMNS = [
    "id",
    "question",
    "choiceA",
    "choiceB",
    "choiceC",
    "choiceD",
    "correct",
    "topics",
    "explanation",
]

# logical field -> accepted headers, lowercase, first non-empty match wins
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "front": ("front",),
    "back": ("back",),
    "question": ("question",),
    "choiceA": ("choicea", "choice a", "choice_a"),
    "choiceB": ("choiceb", "choice b", "choice_b"),
    "choiceC": ("choicec", "choice c", "choice_c"),
    "choiceD": ("choiced", "choice d", "choice_d"),
    "correct": ("correct", "answer"),
    "topics": ("topics", "topic"),
    "explanation": ("explanation",),
}

TEMPLATE_ROWS: dict[str, list[Any]] = {
    FLASHCARD_SHEET: ["F001", "Sample front", "Sample back", "TopicA, TopicB", "Optional explanation"],
    MCQ_SHEET: [
        "Q001", "Sample MCQ?", "Answer A", "Answer B", "Answer C", "Answer D",
        "A", "Topic1, Topic2", "Optional explanation",
    ],
}


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class RowReader:
    """Case-insensitive view over one tabular row."""

    def __init__(self, row: Mapping[str, Any]) -> None:
        self._cells = {str(k).strip().lower(): v for k, v in row.items() if k is not None}

    def get(self, field: str) -> str:
        for alias in COLUMN_ALIASES[field]:
            text = _cell_text(self._cells.get(alias)).strip()
            if text:
                return text
        return ""


def flashcard_from_row(row: Mapping[str, Any]) -> Card | None:
    r = RowReader(row)
    front, back = r.get("front"), r.get("back")
    if not (front or back):
        return None
    return hydrate(
        {
            "id": r.get("id") or None,
            "type": CardType.FLASHCARD.value,
            "front": front,
            "back": back,
            "explanation": r.get("explanation"),
            "topics": split_topics(r.get("topics")),
        }
    )


def mcq_from_row(row: Mapping[str, Any]) -> Card | None:
    r = RowReader(row)
    question = r.get("question")
    choices = [r.get(f"choice{letter}") for letter in "ABCD"]
    if not (question or any(choices)):
        return None
    letter = (r.get("correct").upper() or "A")[0]
    return hydrate(
        {
            "id": r.get("id") or None,
            "type": CardType.MCQ.value,
            "question": question,
            "choices": choices,
            "answer": letter,
            "correct": letter_to_index(letter),
            "explanation": r.get("explanation"),
            "topics": split_topics(r.get("topics")),
        }
    )


def rows_to_cards(
    flashcard_rows: Iterable[Mapping[str, Any]] = (),
    mcq_rows: Iterable[Mapping[str, Any]] = (),
) -> list[Card]:
    cards = [flashcard_from_row(r) for r in flashcard_rows]
    cards += [mcq_from_row(r) for r in mcq_rows]
    return [c for c in cards if c is not None]


def flashcard_to_row(card: Flashcard) -> dict[str, str]:
    return {
        "id": card.id,
        "front": card.front,
        "back": card.back,
        "topics": ",".join(card.topics),
        "explanation": card.explanation,
    }


def mcq_to_row(card: McqCard) -> dict[str, str]:
    row = {"id": card.id, "question": card.question}
    row.update({f"choice{letter}": text for letter, text in zip("ABCD", card.choices)})
    row["correct"] = card.correct_letter
    row["topics"] = ",".join(card.topics)
    row["explanation"] = card.explanation
    return row


def cards_to_rows(cards: Iterable[Card]) -> tuple[list[dict[str, str]], list[dict[str, str]]]:
    flashcards: list[dict[str, str]] = []
    mcqs: list[dict[str, str]] = []
    for card in cards:
        if isinstance(card, McqCard):
            mcqs.append(mcq_to_row(card))
        else:
            flashcards.append(flashcard_to_row(card))
    return flashcards, mcqs


# --- openpyxl I/O ---


def _sheet_rows(ws) -> list[dict[str, Any]]:
    rows = ws.iter_rows(values_only=True)
    header = next(rows, None)
    if not header:
        return []
    names = [_cell_text(h).strip() for h in header]
    out: list[dict[str, Any]] = []
    for values in rows:
        if values is None or all(v in (None, "") for v in values):
            continue
        out.append({name: value for name, value in zip(names, values) if name})
    return out


def read_workbook(content: bytes) -> list[Card]:
    """Parse an .xlsx payload into hydrated cards. Raises on unreadable input."""
    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        sheets = {name.lower(): wb[name] for name in wb.sheetnames}
        flash_ws = sheets.get(FLASHCARD_SHEET.lower())
        mcq_ws = sheets.get(MCQ_SHEET.lower())
        return rows_to_cards(
            _sheet_rows(flash_ws) if flash_ws is not None else [],
            _sheet_rows(mcq_ws) if mcq_ws is not None else [],
        )
    finally:
        wb.close()


def _build_workbook(sheets: dict[str, tuple[list[str], list[list[Any]]]]) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)
    for title, (header, rows) in sheets.items():
        ws = wb.create_sheet(title)
        ws.append(header)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def write_workbook(cards: Iterable[Card]) -> bytes:
    flashcards, mcqs = cards_to_rows(cards)
    return _build_workbook(
        {
            FLASHCARD_SHEET: (FLASHCARD_COLUMNS, [[r[c] for c in FLASHCARD_COLUMNS] for r in flashcards]),
            MCQ_SHEET: (MCQ_COLUMNS, [[r[c] for c in MCQ_COLUMNS] for r in mcqs]),
        }
    )


def template_workbook() -> bytes:
    return _build_workbook(
        {
            FLASHCARD_SHEET: (FLASHCARD_COLUMNS, [TEMPLATE_ROWS[FLASHCARD_SHEET]]),
            MCQ_SHEET: (MCQ_COLUMNS, [TEMPLATE_ROWS[MCQ_SHEET]]),
        }
    )
