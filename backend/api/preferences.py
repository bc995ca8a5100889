from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, Field

DEFAULT_BUDGET_MIN = 1500
DEFAULT_BUDGET_MAX = 4000
BUDGET_STEP = 100


def clamp_budget_range(low: int, high: int, *, step: int = BUDGET_STEP) -> tuple[int, int]:
    """
    Keep the two slider handles from crossing.

    Both sides are clamped against the *incoming* values rather than reordered,
    so a swapped pair widens: (5000, 1000) comes back as (900, 5100).
    """
    clamped_low = min(low, high - step)
    clamped_high = max(high, low + step)
    return clamped_low, clamped_high


class SearchPreferences(BaseModel):
    """
    What the wizard hands to the results page.
    """

    budgetMin: int = Field(default=DEFAULT_BUDGET_MIN, ge=0)
    budgetMax: int = Field(default=DEFAULT_BUDGET_MAX, ge=0)
    boroughs: list[str] = Field(default_factory=list)
    neighborhoods: list[str] = Field(default_factory=list)
    blockCount: int = Field(default=0, ge=0)

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> "SearchPreferences":
        low = _int_or(params.get("budgetMin"), DEFAULT_BUDGET_MIN)
        high = _int_or(params.get("budgetMax"), DEFAULT_BUDGET_MAX)
        if low > high - BUDGET_STEP:
            low, high = clamp_budget_range(low, high)
        return cls(
            budgetMin=max(0, low),
            budgetMax=max(0, high),
            boroughs=_split_list(params.get("boroughs")),
            neighborhoods=_split_list(params.get("neighborhoods")),
            blockCount=max(0, _int_or(params.get("blockCount"), 0)),
        )

    def to_query_params(self) -> dict[str, str]:
        return {
            "budgetMin": str(self.budgetMin),
            "budgetMax": str(self.budgetMax),
            "boroughs": ",".join(self.boroughs),
            "neighborhoods": ",".join(self.neighborhoods),
            "blockCount": str(self.blockCount),
        }


def _int_or(raw: Any, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _split_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        parts = [str(p) for p in raw]
    else:
        parts = str(raw).split(",")
    return [p.strip() for p in parts if p.strip()]
