"""
Deck router.

Endpoints:
  GET  /deck/                - full deck snapshot
  GET  /deck/cards           - filtered card list
  GET  /deck/cards/{id}      - single card
  GET  /deck/topics          - sorted distinct topics
  GET  /deck/overview        - totals, accuracy, wrong/due counts
  GET  /deck/review          - per-card performance rows
  POST /deck/import          - upload .json/.xlsx files (merge or replace)
  GET  /deck/export.json     - deck snapshot as a download
  GET  /deck/export.xlsx     - two-sheet workbook
  GET  /deck/template.xlsx   - empty workbook with one example row per sheet
  POST /deck/reset           - zero all progress, keep cards
  POST /deck/clear           - remove every card
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response

from cardcue.config import settings
from cardcue.dependencies import get_deck_store
from cardcue.models.card import Card, CardType
from cardcue.models.deck import (
    Deck,
    DeckFilter,
    DeckOverview,
    ImportSummary,
    PersistResult,
    ReviewRow,
)
from cardcue.services.deck_store import DeckStore
from cardcue.services.filter_engine import filter_deck
from cardcue.services.importer import ImportFile, import_files
from cardcue.services.tabular import template_workbook, write_workbook

logger = logging.getLogger(__name__)
router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/", response_model=Deck, response_model_by_alias=True)
async def get_deck(store: DeckStore = Depends(get_deck_store)) -> Deck:
    return store.deck


@router.get("/cards", response_model=list[Card], response_model_by_alias=True)
async def list_cards(
    type: CardType | None = Query(default=None),
    topic: str | None = Query(default=None),
    search: str | None = Query(default=None),
    wrong_only: bool = Query(default=False),
    due_only: bool = Query(default=False),
    shuffle: bool = Query(default=False),
    limit: int | None = Query(default=None, ge=0),
    ids: list[str] | None = Query(default=None),
    store: DeckStore = Depends(get_deck_store),
) -> list[Card]:
    criteria = DeckFilter(
        ids=ids,
        type=type,
        topic=topic,
        search=search,
        wrong_only=wrong_only,
        due_only=due_only,
        shuffle=shuffle,
        limit=limit,
    )
    return filter_deck(store.cards, criteria)


@router.get("/cards/{card_id}", response_model=Card, response_model_by_alias=True)
async def get_card(card_id: str, store: DeckStore = Depends(get_deck_store)) -> Card:
    card = store.get_card(card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.get("/topics")
async def list_topics(store: DeckStore = Depends(get_deck_store)) -> list[str]:
    return store.topics_list()


@router.get("/overview", response_model=DeckOverview)
async def overview(store: DeckStore = Depends(get_deck_store)) -> DeckOverview:
    return store.overview()


@router.get("/review", response_model=list[ReviewRow])
async def review(store: DeckStore = Depends(get_deck_store)) -> list[ReviewRow]:
    return store.review_rows()


@router.post("/import", response_model=ImportSummary)
async def import_deck(
    files: list[UploadFile] = File(...),
    replace: bool = Query(default=False),
    store: DeckStore = Depends(get_deck_store),
) -> ImportSummary:
    batch: list[ImportFile] = []
    for upload in files:
        content = await upload.read()
        if len(content) > settings.max_import_bytes:
            logger.warning("Skipping oversized import file: %s", upload.filename)
            content = b""
        batch.append(ImportFile(filename=upload.filename or "", content=content))
    return await import_files(store, batch, replace=replace)


@router.get("/export.json")
async def export_json(store: DeckStore = Depends(get_deck_store)) -> Response:
    return _attachment(
        store.deck.model_dump_json(by_alias=True, indent=2).encode("utf-8"),
        "cardcue_deck.json",
        "application/json",
    )


@router.get("/export.xlsx")
async def export_xlsx(store: DeckStore = Depends(get_deck_store)) -> Response:
    return _attachment(write_workbook(store.cards), "deck.xlsx", XLSX_MEDIA_TYPE)


@router.get("/template.xlsx")
async def template_xlsx() -> Response:
    return _attachment(template_workbook(), "cardcue_template.xlsx", XLSX_MEDIA_TYPE)


@router.post("/reset", response_model=PersistResult)
async def reset_progress(store: DeckStore = Depends(get_deck_store)) -> PersistResult:
    return await store.reset_progress()


@router.post("/clear", response_model=PersistResult)
async def clear_deck(store: DeckStore = Depends(get_deck_store)) -> PersistResult:
    return await store.clear()
