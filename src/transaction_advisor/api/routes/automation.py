from fastapi import APIRouter

from transaction_advisor.api.schemas import EvaluateRequest
from transaction_advisor.automation.rules import RuleMatch, evaluate_rules

router = APIRouter(prefix="/automation")


@router.post("/evaluate")
async def evaluate(req: EvaluateRequest) -> list[RuleMatch]:
    return evaluate_rules(req.transaction, req.rules)
