from datetime import date
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

CUSTOM_RULE_PREFIX = "custom_"

TransactionType = Literal["income", "expense"]
SuggestedAction = Literal["remove_duplicates", "merge", "keep_all"]
DuplicateAction = Literal["remove_duplicates", "merge", "keep_all", "keep_first", "keep_latest"]


class TransactionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    amount: Decimal
    date: date
    account_id: str
    category_id: Optional[str] = None


class Category(BaseModel):
    id: str
    name: str
    transaction_type: TransactionType = "expense"


class ClassificationRule(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    keywords: list[str]
    category_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    active: bool = True

    @field_validator("keywords")
    @classmethod
    def clean_keywords(cls, value: list[str]) -> list[str]:
        keywords: list[str] = []
        for keyword in value:
            cleaned = keyword.strip().lower()
            if cleaned and cleaned not in keywords:
                keywords.append(cleaned)
        if not keywords:
            raise ValueError("a rule needs at least one keyword")
        return keywords

    @property
    def is_custom(self) -> bool:
        return self.id.startswith(CUSTOM_RULE_PREFIX)


class CategorizationResult(BaseModel):
    category_id: Optional[str] = None
    confidence: float = 0.0 # 0.0 to 1.0
    matched_keywords: list[str] = Field(default_factory=list)
    rule_id: Optional[str] = None
    source: Optional[Literal["rule", "learning"]] = None


class DuplicateDetectionSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    amount_tolerance: float = 0.02 # fraction of the average amount
    days_tolerance: int = 7
    description_similarity_threshold: float = 0.8 # informational
    ignore_small_amounts: bool = True
    small_amount_threshold: Decimal = Decimal("10")
    exact_match_required: bool = False
    consider_account: bool = True
    consider_category: bool = False
    require_mutual_match: bool = False


class DuplicateGroup(BaseModel):
    id: str
    transactions: list[TransactionRecord] = Field(min_length=2)
    confidence: float
    reason: str
    suggested_action: SuggestedAction


class RecordUpdate(BaseModel):
    id: str
    updates: dict[str, str]


class DuplicateActionResult(BaseModel):
    to_delete: list[str] = Field(default_factory=list)
    to_update: Optional[RecordUpdate] = None
    message: str
