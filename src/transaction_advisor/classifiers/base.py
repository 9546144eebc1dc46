from abc import ABC, abstractmethod

from transaction_advisor.models import CategorizationResult


class Classifier(ABC):
    @abstractmethod
    def classify(self, description: str) -> CategorizationResult | None:
        """Suggest a category for an already normalized description."""
        pass

    @abstractmethod
    def learn(self, description: str, category_id: str) -> None:
        """Record a confirmed description-category pair."""
        pass
