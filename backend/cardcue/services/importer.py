"""
Import pipeline: uploaded files -> hydrated cards -> merge into the deck.

A batch is fully collected before anything is merged. Unsupported file types
and files that fail to parse contribute no cards; the rest of the batch still
goes through. Merging is by card id: content is overwritten, learning progress
(``stats`` and ``sr``) is carried forward from the existing card.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cardcue.models.card import Card, hydrate, utc_now_iso
from cardcue.models.deck import Deck, ImportSummary
from cardcue.services.deck_store import DeckStore
from cardcue.services.tabular import read_workbook

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".json", ".xlsx")


@dataclass
class ImportFile:
    filename: str
    content: bytes


@dataclass
class ImportBatch:
    cards: list[Card] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def parse_structured_document(text: str) -> list[Card]:
    """Accept ``{"cards": [...]}`` or a bare array of card-shaped objects."""
    data: Any = json.loads(text)
    if isinstance(data, dict):
        data = data.get("cards")
    if not isinstance(data, list):
        raise ValueError("expected a card array or an object with a 'cards' array")
    return [hydrate(item) for item in data if isinstance(item, dict)]


def parse_file(file: ImportFile) -> list[Card]:
    suffix = Path(file.filename).suffix.lower()
    if suffix == ".json":
        return parse_structured_document(file.content.decode("utf-8-sig"))
    if suffix == ".xlsx":
        return read_workbook(file.content)
    raise ValueError(f"unsupported file type: {suffix or file.filename}")


def collect_import_batch(files: Iterable[ImportFile]) -> ImportBatch:
    batch = ImportBatch()
    for file in files:
        if Path(file.filename).suffix.lower() not in SUPPORTED_SUFFIXES:
            logger.warning("Skipping unsupported import file: %s", file.filename)
            batch.skipped.append(file.filename)
            continue
        try:
            cards = parse_file(file)
        except Exception as e:
            logger.warning("Import parse failed for %s: %s", file.filename, e)
            batch.skipped.append(file.filename)
            continue
        logger.info("Parsed %d cards from %s", len(cards), file.filename)
        batch.cards.extend(cards)
    return batch


def merge_cards(
    existing: list[Card], incoming: Iterable[Any]
) -> tuple[list[Card], int, int]:
    """Return (merged cards, added, updated). Never drops an existing card."""
    by_id: dict[str, Card] = {c.id: c for c in existing}
    added = updated = 0
    for raw in incoming:
        card = hydrate(raw)
        previous = by_id.get(card.id)
        if previous is not None:
            card.stats = previous.stats
            card.sr = previous.sr
            updated += 1
        else:
            added += 1
        by_id[card.id] = card
    return list(by_id.values()), added, updated


async def upsert_cards(
    store: DeckStore, incoming: Iterable[Any], replace: bool = False
) -> ImportSummary:
    """Merge ``incoming`` into the deck in one locked write.

    With ``replace`` the existing cards are dropped inside the same write, so no
    reader ever sees an empty intermediate deck.
    """
    incoming = list(incoming)

    def _merge(deck: Deck) -> tuple[int, int]:
        existing = deck.cards
        if replace:
            existing = []
            deck.created_at = utc_now_iso()
        deck.cards, added, updated = merge_cards(existing, incoming)
        return added, updated

    (added, updated), result = await store.mutate(_merge)
    summary = ImportSummary(
        added=added,
        updated=updated,
        total=len(store.cards),
        persisted=result.ok,
    )
    logger.info(
        "Imported %d new, updated %d. Total %d.", summary.added, summary.updated, summary.total
    )
    return summary


async def import_files(
    store: DeckStore, files: Iterable[ImportFile], replace: bool = False
) -> ImportSummary:
    batch = collect_import_batch(files)
    if replace and not batch.cards:
        logger.warning("Replace import collected no cards; keeping current deck")
    summary = await upsert_cards(store, batch.cards, replace=replace and bool(batch.cards))
    summary.skipped_files = batch.skipped
    return summary
