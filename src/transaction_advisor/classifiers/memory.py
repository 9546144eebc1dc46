from transaction_advisor.domain.similarity import jaccard
from transaction_advisor.domain.text import significant_words
from transaction_advisor.models import CategorizationResult

from .base import Classifier


class LearningMemory(Classifier):
    """
    Adaptive fallback built from confirmed categorizations.

    Entries live in ``description -> category_id -> count`` and belong to
    this instance only; nothing is persisted or evicted.
    """

    def __init__(self, similarity_threshold: float = 0.6, confidence_factor: float = 0.8):
        self.similarity_threshold = similarity_threshold
        self.confidence_factor = confidence_factor
        self.entries: dict[str, dict[str, int]] = {}

    def __len__(self) -> int:
        return sum(len(by_category) for by_category in self.entries.values())

    @staticmethod
    def similarity(first: str, second: str) -> float:
        return jaccard(significant_words(first), significant_words(second))

    def classify(self, description: str) -> CategorizationResult | None:
        if not self.entries:
            return None

        matches: list[tuple[float, int, str]] = []
        for learned, by_category in self.entries.items():
            similarity = self.similarity(description, learned)
            if similarity <= self.similarity_threshold:
                continue
            for category_id, count in by_category.items():
                matches.append((similarity, count, category_id))

        if not matches:
            return None

        # Stable sort: equal weights keep learning order
        matches.sort(key=lambda match: match[0] * match[1], reverse=True)
        similarity, _, category_id = matches[0]
        return CategorizationResult(
            category_id=category_id,
            confidence=similarity * self.confidence_factor,
            matched_keywords=[f"similarity: {similarity:.2f}"],
            source="learning",
        )

    def learn(self, description: str, category_id: str) -> None:
        by_category = self.entries.setdefault(description, {})
        by_category[category_id] = by_category.get(category_id, 0) + 1

    def clear(self) -> None:
        self.entries = {}
