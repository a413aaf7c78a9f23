from __future__ import annotations

import random

from cardcue.models.card import Card, Flashcard, McqCard
from cardcue.models.deck import DeckFilter
from cardcue.services.scheduler import is_due, now_ms


def search_haystack(card: Card) -> str:
    front = back = question = ""
    choices: list[str] = []
    if isinstance(card, Flashcard):
        front, back = card.front, card.back
    elif isinstance(card, McqCard):
        question, choices = card.question, card.choices
    parts = [
        card.id,
        card.type,
        front,
        back,
        question,
        " ".join(choices),
        ",".join(card.topics),
        card.explanation,
    ]
    return " ".join(parts).lower()


def filter_deck(
    cards: list[Card],
    criteria: DeckFilter | None = None,
    at_ms: int | None = None,
    rng: random.Random | None = None,
) -> list[Card]:
    """Return the cards matching ``criteria`` as a new list of the same objects.

    Steps run in a fixed order (ids, type, topic, topics, search, wrong-only,
    due-only, shuffle, limit) so shuffling and truncation see the narrowed set.
    """
    criteria = criteria or DeckFilter()
    result = list(cards)

    if criteria.ids is not None:
        wanted = set(criteria.ids)
        result = [c for c in result if c.id in wanted]
    if criteria.type:
        result = [c for c in result if c.type == criteria.type.value]
    if criteria.topic:
        result = [c for c in result if criteria.topic in c.topics]
    if criteria.topics:
        any_of = set(criteria.topics)
        result = [c for c in result if any_of.intersection(c.topics)]
    if criteria.search:
        needle = criteria.search.lower()
        result = [c for c in result if needle in search_haystack(c)]
    if criteria.wrong_only:
        # "ever missed", not "missed last time"
        result = [c for c in result if c.stats.correct < c.stats.seen]
    if criteria.due_only:
        at = now_ms() if at_ms is None else at_ms
        result = [c for c in result if is_due(c, at)]
    if criteria.shuffle:
        (rng or random).shuffle(result)
    if criteria.limit:
        result = result[: criteria.limit]
    return result
