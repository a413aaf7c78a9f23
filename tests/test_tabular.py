"""Tests for the two-sheet workbook contract."""

import io

from openpyxl import Workbook, load_workbook

from cardcue.models.card import Flashcard, McqCard
from cardcue.services.tabular import (
    FLASHCARD_COLUMNS,
    MCQ_COLUMNS,
    cards_to_rows,
    read_workbook,
    rows_to_cards,
    template_workbook,
    write_workbook,
)
from tests.factories import make_flashcard, make_mcq


def _xlsx(sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_headers_match_case_insensitively():
    [card] = rows_to_cards(
        flashcard_rows=[{"ID": "F9", "Front": "f", "BACK": "b", "Topics": "x; y", "Explanation": "e"}]
    )
    assert isinstance(card, Flashcard)
    assert (card.id, card.front, card.back, card.topics, card.explanation) == ("F9", "f", "b", ["x", "y"], "e")


def test_blank_rows_are_skipped():
    assert rows_to_cards(flashcard_rows=[{"id": "F1", "front": "", "back": ""}]) == []
    assert rows_to_cards(mcq_rows=[{"id": "Q1"}]) == []


def test_mcq_row_letter_and_defaults():
    [card] = rows_to_cards(mcq_rows=[{
        "question": "2+2?", "ChoiceA": "3", "choiceb": "4", "CHOICEC": "5", "choiceD": "6",
        "correct": "b) four", "topics": "math",
    }])
    assert isinstance(card, McqCard)
    assert card.choices == ["3", "4", "5", "6"]
    assert card.correct == 1
    assert card.answer == "B"
    assert card.id  # generated


def test_mcq_missing_letter_defaults_to_a():
    [card] = rows_to_cards(mcq_rows=[{"question": "q", "choiceA": "x"}])
    assert card.correct == 0


def test_export_rows_rejoin_topics_and_letter():
    flash, mcq = cards_to_rows([
        make_flashcard("f1", topics=["A", "B"]),
        make_mcq("q1", correct=3, topics=["T"]),
    ])
    assert flash == [{"id": "f1", "front": "front f1", "back": "back f1", "topics": "A,B", "explanation": ""}]
    assert mcq[0]["correct"] == "D"
    assert mcq[0]["choiceA"] == "w"
    assert list(mcq[0]) == MCQ_COLUMNS


def test_read_workbook_finds_sheets_case_insensitively():
    content = _xlsx({
        "flashcards": [["Id", "Front", "Back", "Topics"], ["F1", "hello", "world", "greet"], [None, None, None, None]],
        "mcq": [MCQ_COLUMNS, ["Q1", "pick", "a", "b", "c", "d", "C", "t1, t2", ""]],
        "Notes": [["ignored"]],
    })
    cards = read_workbook(content)
    assert [c.id for c in cards] == ["F1", "Q1"]
    assert cards[1].correct == 2
    assert cards[1].topics == ["t1", "t2"]


def test_numeric_ids_read_as_plain_text():
    content = _xlsx({"Flashcards": [FLASHCARD_COLUMNS, [1001, "f", "b", "", ""]]})
    [card] = read_workbook(content)
    assert card.id == "1001"


def test_written_workbook_reads_back():
    cards = [make_flashcard("f1", topics=["A"]), make_mcq("q1", correct=2)]
    again = read_workbook(write_workbook(cards))
    assert [(c.id, c.type) for c in again] == [("f1", "flashcard"), ("q1", "mcq")]
    assert again[1].correct == 2


def test_template_has_one_example_row_per_sheet():
    wb = load_workbook(io.BytesIO(template_workbook()))
    assert wb.sheetnames == ["Flashcards", "MCQ"]
    flash = list(wb["Flashcards"].iter_rows(values_only=True))
    mcq = list(wb["MCQ"].iter_rows(values_only=True))
    assert list(flash[0]) == FLASHCARD_COLUMNS
    assert list(mcq[0]) == MCQ_COLUMNS
    assert len(flash) == 2 and len(mcq) == 2
    assert [c.id for c in read_workbook(template_workbook())] == ["F001", "Q001"]
