from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from app.core.contracts import Priority, PriorityVerdict


@dataclass(frozen=True)
class PriorityTier:
    priority: Priority
    label: str  # used in the reason text
    keywords: Tuple[str, ...]


DEFAULT_TIERS: Tuple[PriorityTier, ...] = (
    PriorityTier(
        priority="urgent",
        label="urgent",
        keywords=("urgent", "sos", "emergency", "help", "immediate", "critical", "trapped", "rescue"),
    ),
    PriorityTier(
        priority="high",
        label="high priority",
        keywords=("evacuate", "flooding", "fire", "danger", "warning", "shelter", "medical"),
    ),
)

DEFAULT_REASON = "Standard post"


class PriorityClassifier:
    """
    Ordered keyword tiers, first match wins.

    Tiers are checked in order and, inside a tier, keywords in declared order;
    matching is a case-insensitive substring test ("helpful" counts as "help").
    """

    def __init__(
        self,
        tiers: Iterable[PriorityTier] = DEFAULT_TIERS,
        *,
        default_reason: str = DEFAULT_REASON,
    ) -> None:
        self.tiers: Tuple[PriorityTier, ...] = tuple(
            PriorityTier(t.priority, t.label, tuple(k.lower() for k in t.keywords)) for t in tiers
        )
        self.default_reason = default_reason

    def classify(self, text: str | None) -> PriorityVerdict:
        hay = (text or "").lower()
        for tier in self.tiers:
            for word in tier.keywords:
                if word in hay:
                    return PriorityVerdict(
                        priority=tier.priority,
                        reason=f"Contains {tier.label} keyword: {word}",
                    )
        return PriorityVerdict(priority="normal", reason=self.default_reason)

    def classify_item(self, item: Mapping[str, Any], text_field: str) -> Dict[str, Any]:
        """Copy of `item` with `priority` / `priority_reason` added. `item` is not touched."""
        text = item.get(text_field)
        verdict = self.classify(text if isinstance(text, str) else None)
        return {**item, "priority": verdict.priority, "priority_reason": verdict.reason}

    def classify_items(self, items: Iterable[Mapping[str, Any]], text_field: str) -> List[Dict[str, Any]]:
        return [self.classify_item(it, text_field) for it in items]
