from decimal import Decimal
from typing import Any

from transaction_advisor.classifiers.base import Classifier
from transaction_advisor.classifiers.catalogue import (
    DEFAULT_TEMPLATES,
    CategoryResolver,
    RuleTemplate,
    build_builtin_rules,
)
from transaction_advisor.classifiers.memory import LearningMemory
from transaction_advisor.classifiers.rules import RuleClassifier
from transaction_advisor.domain.text import normalize_text
from transaction_advisor.logger import get_logger
from transaction_advisor.models import (
    CUSTOM_RULE_PREFIX,
    CategorizationResult,
    Category,
    ClassificationRule,
)

logger = get_logger(__name__)

# Below this rule confidence the learning memory is consulted
LEARNING_FALLBACK_BELOW = 0.7


class ClassificationEngine:
    """
    Suggests a category for a transaction description.

    Keyword rules are tried first. When the best rule is weaker than
    ``LEARNING_FALLBACK_BELOW`` the learning memory may replace it with a
    category previously confirmed for a similar description. The engine
    never touches storage; callers persist accepted suggestions.
    """

    def __init__(self,
                 categories: list[Category],
                 resolver: CategoryResolver | None = None,
                 templates: tuple[RuleTemplate, ...] = DEFAULT_TEMPLATES,
                 protect_builtin_rules: bool = False):

        self.categories = list(categories)
        self.resolver = resolver
        self.templates = templates
        self.protect_builtin_rules = protect_builtin_rules

        self.rules = RuleClassifier(build_builtin_rules(self.categories, resolver, templates))
        self.memory = LearningMemory()
        # Rules first, memory as fallback
        self.classifiers: list[Classifier] = [self.rules, self.memory]

        logger.info(
            "[RULES] Seeded %d built-in rules from %d categories.",
            len(self.rules.rules),
            len(self.categories),
        )

    def categorize_transaction(
        self,
        description: str,
        amount: Decimal | float = 0,
        existing_category_id: str | None = None,
    ) -> CategorizationResult:
        normalized = normalize_text(description)

        best = self.rules.classify(normalized)
        best_confidence = best.confidence if best else 0.0

        if best_confidence < LEARNING_FALLBACK_BELOW:
            learned = self.memory.classify(normalized)
            if learned and learned.confidence > best_confidence:
                logger.debug(
                    "[CLASSIFY] Learning fallback for '%s': %s (confidence: %.2f)",
                    normalized[:50],
                    learned.category_id,
                    learned.confidence,
                )
                best = learned

        if existing_category_id:
            for classifier in self.classifiers:
                classifier.learn(normalized, existing_category_id)

        if best is None:
            logger.debug("[CLASSIFY] No match for '%s' (amount %s).", normalized[:50], amount)
            return CategorizationResult()

        logger.debug(
            "[CLASSIFY] '%s' -> %s via %s (confidence: %.2f)",
            normalized[:50],
            best.category_id,
            best.source,
            best.confidence,
        )
        return best

    def replace_categories(self, categories: list[Category]) -> None:
        """
        Re-bind the built-in rules to a new category list.

        Custom rules and the learning memory are kept untouched, even when
        they point at a category that is no longer listed.
        """
        self.categories = list(categories)
        builtin = build_builtin_rules(self.categories, self.resolver, self.templates)
        custom = [rule for rule in self.rules.rules if rule.is_custom]
        self.rules.rules = builtin + custom
        logger.info(
            "[RULES] Re-seeded %d built-in rules for %d categories; kept %d custom rules.",
            len(builtin),
            len(self.categories),
            len(custom),
        )

    def add_custom_rule(
        self,
        keywords: list[str],
        category_id: str,
        confidence: float = 0.8,
        active: bool = True,
    ) -> ClassificationRule:
        rule = self.rules.add(keywords, category_id, confidence, active=active)
        logger.info("[RULES] Added custom rule %s -> %s.", rule.id, category_id)
        return rule.model_copy(deep=True)

    def update_rule(self, rule_id: str, **updates: Any) -> bool:
        updated = self.rules.update(rule_id, updates)
        if updated:
            logger.info("[RULES] Updated rule %s: %s", rule_id, ", ".join(sorted(updates)))
        return updated

    def delete_rule(self, rule_id: str) -> bool:
        if self.protect_builtin_rules and not rule_id.startswith(CUSTOM_RULE_PREFIX):
            logger.info("[RULES] Refusing to delete built-in rule %s.", rule_id)
            return False
        deleted = self.rules.delete(rule_id)
        if deleted:
            logger.info("[RULES] Deleted rule %s.", rule_id)
        return deleted

    def get_rules(self) -> list[ClassificationRule]:
        return self.rules.snapshot()

    def restore_rules(self, rules: list[ClassificationRule]) -> None:
        """Replace the rule list, e.g. with a snapshot the caller persisted."""
        self.rules.rules = [rule.model_copy(deep=True) for rule in rules]
        logger.info("[RULES] Restored %d rules.", len(self.rules.rules))

    def get_categorization_stats(self) -> dict[str, int]:
        return {
            "total_rules": len(self.rules.rules),
            "active_rules": sum(1 for rule in self.rules.rules if rule.active),
            "learning_entries": len(self.memory),
        }

    def clear_learning(self) -> None:
        self.memory.clear()
        logger.info("[CLASSIFY] Learning memory cleared.")
