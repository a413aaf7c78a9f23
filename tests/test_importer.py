"""Tests for import collection and merging."""

import json

import pytest

from cardcue.models.card import card_to_dict
from cardcue.models.deck import Deck
from cardcue.services.deck_store import DeckStore
from cardcue.services.importer import (
    ImportFile,
    collect_import_batch,
    import_files,
    merge_cards,
    parse_structured_document,
    upsert_cards,
)
from cardcue.services.tabular import write_workbook
from tests.factories import make_flashcard, make_mcq


def _json_file(name, payload):
    return ImportFile(filename=name, content=json.dumps(payload).encode("utf-8"))


class TestMergeCards:

    def test_update_keeps_progress(self):
        existing = make_flashcard("f1", stats={"seen": 5, "correct": 2, "streak": 1},
                                  sr={"intervalDays": 3, "nextDue": 123, "lastReviewed": 100})
        merged, added, updated = merge_cards([existing], [{"id": "f1", "front": "new text"}])
        [card] = merged
        assert card.front == "new text"
        assert card.stats.seen == 5
        assert card.sr.next_due == 123
        assert (added, updated) == (0, 1)

    def test_new_cards_are_appended_and_nothing_is_dropped(self):
        existing = [make_flashcard("a"), make_flashcard("b")]
        merged, added, updated = merge_cards(existing, [make_mcq("c"), {"id": "a", "front": "A2"}])
        assert [c.id for c in merged] == ["a", "b", "c"]
        assert merged[0].front == "A2"
        assert (added, updated) == (1, 1)

    def test_new_card_gets_zero_progress(self):
        merged, _, _ = merge_cards([], [{"id": "n", "front": "f"}])
        assert merged[0].stats.seen == 0
        assert merged[0].sr.next_due == 0


class TestStructuredDocument:

    def test_cards_wrapper(self):
        cards = parse_structured_document(json.dumps({"cards": [{"id": "a"}, "junk", {"id": "b"}]}))
        assert [c.id for c in cards] == ["a", "b"]

    def test_bare_array(self):
        cards = parse_structured_document(json.dumps([{"type": "mcq", "answer": "D"}]))
        assert cards[0].correct == 3

    def test_object_without_cards_is_rejected(self):
        with pytest.raises(ValueError):
            parse_structured_document(json.dumps({"deck": []}))


def test_batch_skips_unsupported_and_broken_files():
    batch = collect_import_batch([
        _json_file("good.json", [{"id": "a"}]),
        ImportFile(filename="notes.csv", content=b"id,front\n1,x"),
        ImportFile(filename="broken.json", content=b"{oops"),
        ImportFile(filename="broken.xlsx", content=b"not a zip"),
        ImportFile(filename="sheet.XLSX", content=write_workbook([make_mcq("q1")])),
    ])
    assert [c.id for c in batch.cards] == ["a", "q1"]
    assert batch.skipped == ["notes.csv", "broken.json", "broken.xlsx"]


async def test_upsert_persists_once_with_summary(store):
    writes = []
    store.subscribe(lambda deck: writes.append(len(deck.cards)))
    await store.replace(Deck(cards=[make_flashcard("a", topics=["T"])]))
    summary = await upsert_cards(store, [make_flashcard("a"), make_flashcard("b", topics=["U"])])
    assert (summary.added, summary.updated, summary.total) == (1, 1, 2)
    assert summary.persisted
    assert writes == [1, 2]
    assert store.deck.topic_index == {"U": ["b"]}


async def test_reimport_with_same_id_preserves_seen(store):
    card = make_flashcard("f1")
    await store.replace(Deck(cards=[card]))
    for _ in range(5):
        await store.record_result(card, False)
    await import_files(store, [_json_file("d.json", {"cards": [{"id": "f1", "front": "changed"}]})])
    [reimported] = store.cards
    assert reimported.front == "changed"
    assert reimported.stats.seen == 5


async def test_replace_mode_drops_old_cards(store):
    await store.replace(Deck(cards=[make_flashcard("old")]))
    summary = await import_files(store, [_json_file("d.json", [{"id": "new"}])], replace=True)
    assert [c.id for c in store.cards] == ["new"]
    assert (summary.added, summary.total) == (1, 1)


async def test_replace_mode_is_a_single_write(store):
    await store.replace(Deck(cards=[make_flashcard("old", stats={"seen": 4, "correct": 4})]))
    snapshots = []
    store.subscribe(lambda deck: snapshots.append([c.id for c in deck.cards]))
    await import_files(store, [_json_file("d.json", [{"id": "old"}, {"id": "new"}])], replace=True)
    assert snapshots == [["old", "new"]]
    assert store.get_card("old").stats.seen == 0


async def test_replace_mode_with_nothing_collected_keeps_deck(store):
    await store.replace(Deck(cards=[make_flashcard("old")]))
    summary = await import_files(store, [ImportFile("x.txt", b"")], replace=True)
    assert [c.id for c in store.cards] == ["old"]
    assert summary.skipped_files == ["x.txt"]


async def test_json_export_round_trip(store):
    original = Deck(cards=[
        make_flashcard("f1", topics=["A", "B"], explanation="why",
                       stats={"seen": 3, "correct": 2, "streak": 1}),
        make_mcq("q1", correct=2, topics=["B"], sr={"intervalDays": 7, "nextDue": 5, "lastReviewed": 1}),
    ])
    await store.replace(original)
    exported = store.deck.model_dump_json(by_alias=True)

    fresh = DeckStore(key="cardcue:test:roundtrip")
    await fresh.load()
    await import_files(fresh, [ImportFile("cardcue_deck.json", exported.encode())], replace=True)

    assert [card_to_dict(c) for c in fresh.cards] == [card_to_dict(c) for c in store.cards]
    assert fresh.deck.topic_index == store.deck.topic_index
