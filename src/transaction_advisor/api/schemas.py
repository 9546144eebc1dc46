from decimal import Decimal

from pydantic import BaseModel, Field

from transaction_advisor.automation.rules import AutomationRule
from transaction_advisor.models import DuplicateAction, DuplicateGroup, TransactionRecord


class CategorizeRequest(BaseModel):
    description: str
    amount: Decimal = Decimal("0")
    existing_category_id: str | None = None


class SuggestionsRequest(BaseModel):
    transactions: list[TransactionRecord]
    limit: int | None = Field(default=None, ge=1)
    min_confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class RuleCreate(BaseModel):
    keywords: list[str] = Field(min_length=1)
    category_id: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    active: bool = True


class RuleUpdate(BaseModel):
    keywords: list[str] | None = Field(default=None, min_length=1)
    category_id: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    active: bool | None = None


class DetectRequest(BaseModel):
    transactions: list[TransactionRecord]


class ApplyActionRequest(BaseModel):
    group: DuplicateGroup
    action: DuplicateAction


class DuplicateSettingsUpdate(BaseModel):
    amount_tolerance: float | None = None
    days_tolerance: int | None = None
    description_similarity_threshold: float | None = None
    ignore_small_amounts: bool | None = None
    small_amount_threshold: Decimal | None = None
    exact_match_required: bool | None = None
    consider_account: bool | None = None
    consider_category: bool | None = None
    require_mutual_match: bool | None = None


class EvaluateRequest(BaseModel):
    transaction: TransactionRecord
    rules: list[AutomationRule]
