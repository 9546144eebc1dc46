from typing import Any

from transaction_advisor.core import settings as app_settings
from transaction_advisor.duplicates.scoring import describe_match, pair_score, suggest_action
from transaction_advisor.logger import get_logger
from transaction_advisor.models import (
    DuplicateAction,
    DuplicateActionResult,
    DuplicateDetectionSettings,
    DuplicateGroup,
    RecordUpdate,
    TransactionRecord,
)

logger = get_logger(__name__)

# Minimum pairwise score for a record to join an anchor's group
DUPLICATE_THRESHOLD = 0.7
MERGED_MARKER = "(merged)"


def apply_duplicate_action(group: DuplicateGroup, action: DuplicateAction) -> DuplicateActionResult:
    """
    Translate a chosen action into the deletions and update a caller should run.

    Pure: the group is not modified and nothing is persisted.
    """
    members = group.transactions
    duplicates = len(members) - 1

    if action in ("remove_duplicates", "keep_first"):
        message = (
            f"{duplicates} transações duplicadas removidas"
            if action == "remove_duplicates"
            else f"Mantida a primeira transação, {duplicates} duplicatas removidas"
        )
        return DuplicateActionResult(
            to_delete=[member.id for member in members[1:]],
            message=message,
        )

    if action == "keep_latest":
        newest_first = sorted(members, key=lambda member: member.date, reverse=True)
        return DuplicateActionResult(
            to_delete=[member.id for member in newest_first[1:]],
            message=f"Mantida a transação mais recente, {duplicates} duplicatas removidas",
        )

    if action == "merge":
        main = members[0]
        return DuplicateActionResult(
            to_delete=[member.id for member in members[1:]],
            to_update=RecordUpdate(
                id=main.id,
                updates={"description": f"{main.description} {MERGED_MARKER}"},
            ),
            message=f"{len(members)} transações mescladas em uma",
        )

    if action == "keep_all":
        return DuplicateActionResult(
            message="Nenhuma ação executada - todas as transações mantidas",
        )

    raise ValueError(f"Unknown duplicate action: {action!r}")


class DuplicateDetectionEngine:
    """
    Groups near-duplicate transactions.

    Grouping is greedy and anchor-relative: each unclaimed record, in input
    order, collects every later unclaimed record scoring at least
    ``DUPLICATE_THRESHOLD`` against it. Cost is quadratic in the batch size.
    """

    apply_duplicate_action = staticmethod(apply_duplicate_action)

    def __init__(self, settings: DuplicateDetectionSettings | None = None, **overrides: Any):
        base = settings or DuplicateDetectionSettings()
        self.settings = (
            DuplicateDetectionSettings.model_validate({**base.model_dump(), **overrides})
            if overrides
            else base
        )

    def get_settings(self) -> DuplicateDetectionSettings:
        return self.settings

    def update_settings(self, **changes: Any) -> DuplicateDetectionSettings:
        self.settings = DuplicateDetectionSettings.model_validate(
            {**self.settings.model_dump(), **changes}
        )
        logger.info("[DUPLICATES] Settings updated: %s", ", ".join(sorted(changes)))
        return self.settings

    def _eligible(self, transactions: list[TransactionRecord]) -> list[TransactionRecord]:
        if not self.settings.ignore_small_amounts:
            return list(transactions)
        threshold = self.settings.small_amount_threshold
        return [t for t in transactions if abs(t.amount) >= threshold]

    def _group_confidence(self, members: list[TransactionRecord]) -> float:
        scores = [
            pair_score(members[i], members[j], self.settings)
            for i in range(len(members))
            for j in range(i + 1, len(members))
        ]
        return sum(scores) / len(scores) if scores else 0.0

    def _candidates_for(
        self,
        anchor: TransactionRecord,
        pool: list[tuple[int, TransactionRecord]],
    ) -> list[tuple[int, TransactionRecord]]:
        scored: list[tuple[float, int, TransactionRecord]] = []
        for index, candidate in pool:
            score = pair_score(anchor, candidate, self.settings)
            if score >= DUPLICATE_THRESHOLD:
                scored.append((score, index, candidate))
        scored.sort(key=lambda item: item[0], reverse=True)

        if not self.settings.require_mutual_match:
            return [(index, candidate) for _, index, candidate in scored]

        accepted: list[tuple[int, TransactionRecord]] = []
        for _, index, candidate in scored:
            if all(
                pair_score(member, candidate, self.settings) >= DUPLICATE_THRESHOLD
                for _, member in accepted
            ):
                accepted.append((index, candidate))
        return accepted

    def detect_duplicates(self, transactions: list[TransactionRecord]) -> list[DuplicateGroup]:
        eligible = self._eligible(transactions)
        if len(eligible) > app_settings.DUPLICATE_BATCH_WARN_SIZE:
            logger.warning(
                "[DUPLICATES] Scanning %d transactions pairwise; batches above %d are slow.",
                len(eligible),
                app_settings.DUPLICATE_BATCH_WARN_SIZE,
            )

        groups: list[DuplicateGroup] = []
        claimed: set[int] = set()

        for position, anchor in enumerate(eligible):
            if position in claimed:
                continue

            pool = [
                (index, eligible[index])
                for index in range(position + 1, len(eligible))
                if index not in claimed
            ]
            candidates = self._candidates_for(anchor, pool)
            if not candidates:
                continue

            members = [anchor] + [candidate for _, candidate in candidates]
            confidence = self._group_confidence(members)
            group = DuplicateGroup(
                id=f"group_{anchor.id}",
                transactions=members,
                confidence=confidence,
                reason=describe_match(members[0], members[1], self.settings),
                suggested_action=suggest_action(confidence),
            )
            groups.append(group)
            claimed.add(position)
            claimed.update(index for index, _ in candidates)

            logger.debug(
                "[DUPLICATES] %s: %d members (confidence: %.2f, %s)",
                group.id,
                len(members),
                confidence,
                group.suggested_action,
            )

        groups.sort(key=lambda group: group.confidence, reverse=True)
        logger.info(
            "[DUPLICATES] Found %d groups in %d transactions.",
            len(groups),
            len(transactions),
        )
        return groups
