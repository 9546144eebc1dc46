from typing import Any
from uuid import uuid4

from transaction_advisor.domain.text import normalize_text
from transaction_advisor.logger import get_logger
from transaction_advisor.models import CUSTOM_RULE_PREFIX, CategorizationResult, ClassificationRule

from .base import Classifier

logger = get_logger(__name__)

MULTI_KEYWORD_BONUS = 0.1
EXACT_MATCH_BONUS = 0.1


class RuleClassifier(Classifier):
    def __init__(self, rules: list[ClassificationRule] | None = None):
        self.rules: list[ClassificationRule] = list(rules or [])

    def classify(self, description: str) -> CategorizationResult | None:
        best: CategorizationResult | None = None
        best_confidence = 0.0

        for rule in self.rules:
            if not rule.active:
                continue
            matched = [
                keyword for keyword in rule.keywords
                if normalize_text(keyword) in description
            ]
            if not matched:
                continue

            confidence = self._score(rule, matched, description)
            # Ties keep the earlier rule
            if confidence > best_confidence:
                best_confidence = confidence
                best = CategorizationResult(
                    category_id=rule.category_id,
                    confidence=confidence,
                    matched_keywords=matched,
                    rule_id=rule.id,
                    source="rule",
                )

        return best

    @staticmethod
    def _score(rule: ClassificationRule, matched: list[str], description: str) -> float:
        confidence = rule.confidence
        if len(matched) > 1:
            confidence += MULTI_KEYWORD_BONUS * (len(matched) - 1)
        if any(description == normalize_text(keyword) for keyword in matched):
            confidence += EXACT_MATCH_BONUS
        return min(confidence, 1.0)

    def learn(self, description: str, category_id: str) -> None:
        # Keyword rules are edited explicitly, never learned
        pass

    def find(self, rule_id: str) -> int | None:
        for index, rule in enumerate(self.rules):
            if rule.id == rule_id:
                return index
        return None

    def add(
        self,
        keywords: list[str],
        category_id: str,
        confidence: float,
        active: bool = True,
    ) -> ClassificationRule:
        rule = ClassificationRule(
            id=f"{CUSTOM_RULE_PREFIX}{uuid4().hex[:12]}",
            keywords=keywords,
            category_id=category_id,
            confidence=confidence,
            active=active,
        )
        self.rules.append(rule)
        return rule

    def update(self, rule_id: str, updates: dict[str, Any]) -> bool:
        index = self.find(rule_id)
        if index is None:
            return False
        current = self.rules[index]
        merged = {**current.model_dump(), **updates, "id": current.id}
        self.rules[index] = ClassificationRule.model_validate(merged)
        return True

    def delete(self, rule_id: str) -> bool:
        index = self.find(rule_id)
        if index is None:
            return False
        del self.rules[index]
        return True

    def snapshot(self) -> list[ClassificationRule]:
        return [rule.model_copy(deep=True) for rule in self.rules]
