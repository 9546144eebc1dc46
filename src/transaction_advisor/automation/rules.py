from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from transaction_advisor.domain.text import normalize_text
from transaction_advisor.logger import get_logger
from transaction_advisor.models import TransactionRecord

logger = get_logger(__name__)

TextOperator = Literal["contains", "equals", "starts_with", "ends_with"]
CompareOperator = Literal["equals", "greater_than", "less_than"]
RuleType = Literal["categorization", "recurring", "budget", "alert"]


class TextCondition(BaseModel):
    kind: Literal["text"] = "text"
    operator: TextOperator = "contains"
    value: str = Field(min_length=1)


class AmountCondition(BaseModel):
    kind: Literal["amount"] = "amount"
    operator: CompareOperator
    value: Decimal


class DayOfMonthCondition(BaseModel):
    kind: Literal["day_of_month"] = "day_of_month"
    operator: CompareOperator = "equals"
    value: int = Field(ge=1, le=31)


class CategoryCondition(BaseModel):
    kind: Literal["category"] = "category"
    operator: Literal["equals"] = "equals"
    value: str


RuleCondition = Annotated[
    Union[TextCondition, AmountCondition, DayOfMonthCondition, CategoryCondition],
    Field(discriminator="kind"),
]


class SetCategoryAction(BaseModel):
    type: Literal["set_category"] = "set_category"
    category_id: str


class ApplyTagAction(BaseModel):
    type: Literal["apply_tag"] = "apply_tag"
    tag: str = Field(min_length=1)


class SetRecurringAction(BaseModel):
    type: Literal["set_recurring"] = "set_recurring"


class SendAlertAction(BaseModel):
    type: Literal["send_alert"] = "send_alert"
    message: str = ""


RuleAction = Annotated[
    Union[SetCategoryAction, ApplyTagAction, SetRecurringAction, SendAlertAction],
    Field(discriminator="type"),
]


class AutomationRule(BaseModel):
    id: str
    name: str
    enabled: bool = True
    rule_type: RuleType = "categorization"
    conditions: list[RuleCondition] = Field(min_length=1)
    actions: list[RuleAction] = Field(min_length=1)
    priority: int = 1


class RuleMatch(BaseModel):
    rule_id: str
    rule_name: str
    actions: list[RuleAction]


def _compare(actual: Decimal | int, operator: CompareOperator, expected: Decimal | int) -> bool:
    if operator == "equals":
        return actual == expected
    if operator == "greater_than":
        return actual > expected
    if operator == "less_than":
        return actual < expected
    raise ValueError(f"Unknown comparison operator: {operator!r}")


def _match_text(text: str, operator: TextOperator, expected: str) -> bool:
    haystack = normalize_text(text)
    needle = normalize_text(expected)
    if operator == "contains":
        return needle in haystack
    if operator == "equals":
        return haystack == needle
    if operator == "starts_with":
        return haystack.startswith(needle)
    if operator == "ends_with":
        return haystack.endswith(needle)
    raise ValueError(f"Unknown text operator: {operator!r}")


def condition_holds(condition: RuleCondition, transaction: TransactionRecord) -> bool:
    if isinstance(condition, TextCondition):
        return _match_text(transaction.description, condition.operator, condition.value)
    if isinstance(condition, AmountCondition):
        return _compare(abs(transaction.amount), condition.operator, condition.value)
    if isinstance(condition, DayOfMonthCondition):
        return _compare(transaction.date.day, condition.operator, condition.value)
    if isinstance(condition, CategoryCondition):
        return transaction.category_id == condition.value
    raise TypeError(f"Unsupported condition: {type(condition).__name__}")


def evaluate_rules(transaction: TransactionRecord, rules: list[AutomationRule]) -> list[RuleMatch]:
    """
    Return the enabled rules whose conditions all hold, lowest priority first.

    Rules only produce advice; applying the actions is up to the caller.
    """
    matches: list[RuleMatch] = []
    for rule in sorted(rules, key=lambda r: r.priority):
        if not rule.enabled:
            continue
        if all(condition_holds(condition, transaction) for condition in rule.conditions):
            matches.append(RuleMatch(rule_id=rule.id, rule_name=rule.name, actions=rule.actions))

    if matches:
        logger.debug(
            "[AUTOMATION] Transaction %s matched rules: %s",
            transaction.id,
            ", ".join(match.rule_id for match in matches),
        )
    return matches
