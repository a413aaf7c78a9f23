from cardcue.models.card import (
    Card,
    CardSchedule,
    CardStats,
    CardType,
    Flashcard,
    McqCard,
    card_to_dict,
    hydrate,
)
from cardcue.models.deck import (
    Deck,
    DeckFilter,
    DeckOverview,
    ImportSummary,
    PersistResult,
    ReviewRow,
    TopicCount,
)
from cardcue.models.preferences import StudySettings

__all__ = [
    "Card",
    "CardSchedule",
    "CardStats",
    "CardType",
    "Deck",
    "DeckFilter",
    "DeckOverview",
    "Flashcard",
    "ImportSummary",
    "McqCard",
    "PersistResult",
    "ReviewRow",
    "StudySettings",
    "TopicCount",
    "card_to_dict",
    "hydrate",
]
