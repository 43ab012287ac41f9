"""Data models for capacity-bounded transaction selection."""

from __future__ import annotations

from enum import Enum
from fractions import Fraction

from pydantic import BaseModel, ConfigDict, Field


class Transaction(BaseModel):
    """A candidate transaction: an opaque id, a size cost and a fee value."""

    model_config = ConfigDict(frozen=True)

    id: str
    size: int = Field(gt=0)
    fee: int = Field(gt=0)

    @property
    def density(self) -> float:
        """Fee per unit of size (display only)."""
        return self.fee / self.size

    @property
    def density_key(self) -> Fraction:
        """Exact fee/size ratio, used for every ordering comparison."""
        return Fraction(self.fee, self.size)


class DecisionKind(str, Enum):
    """Outcome of offering a transaction to the selector."""

    ADMITTED = "admitted"  # Fit into free space
    REPLACED = "replaced"  # Fit after evicting a lowest-density prefix
    REJECTED = "rejected"  # Nothing changed


class Decision(BaseModel):
    """The selector's verdict for one offered transaction."""

    model_config = ConfigDict(frozen=True)

    kind: DecisionKind
    evicted_ids: tuple[str, ...] = ()
    reason: str = ""

    @classmethod
    def admitted(cls) -> Decision:
        return cls(kind=DecisionKind.ADMITTED)

    @classmethod
    def replaced(cls, evicted_ids: list[str]) -> Decision:
        return cls(kind=DecisionKind.REPLACED, evicted_ids=tuple(evicted_ids))

    @classmethod
    def rejected(cls, reason: str) -> Decision:
        return cls(kind=DecisionKind.REJECTED, reason=reason)

    @property
    def accepted(self) -> bool:
        return self.kind is not DecisionKind.REJECTED


class RunStats(BaseModel):
    """Counters collected by the driving loop."""

    offered: int = 0
    admitted: int = 0
    replaced: int = 0
    rejected: int = 0
    invalid: int = 0  # Failed validation before reaching the selector
    evicted: int = 0  # Transactions removed by replacements

    def record(self, decision: Decision) -> None:
        self.offered += 1
        if decision.kind is DecisionKind.ADMITTED:
            self.admitted += 1
        elif decision.kind is DecisionKind.REPLACED:
            self.replaced += 1
            self.evicted += len(decision.evicted_ids)
        else:
            self.rejected += 1


class StopReason(str, Enum):
    """Why the driving loop stopped pulling candidates."""

    DEADLINE = "deadline"
    EXHAUSTED = "exhausted"
    MALFORMED = "malformed"


class SelectionResult(BaseModel):
    """Read-only projection of the selector state at the end of a run."""

    items: list[Transaction] = Field(default_factory=list)
    capacity: int
    used_capacity: int = 0
    total_fee: int = 0
    elapsed_ms: float = 0.0
    time_budget_ms: int = 0
    stopped_by: StopReason = StopReason.EXHAUSTED
    stats: RunStats = Field(default_factory=RunStats)

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def fill_pct(self) -> float:
        return round(self.used_capacity / max(self.capacity, 1) * 100, 1)

    def summary(self) -> str:
        """Human-readable summary of the selected block."""
        s = self.stats
        lines = [
            f"Transactions: {self.count}",
            f"Size: {self.used_capacity:,} / {self.capacity:,} ({self.fill_pct:.0f}%)",
            f"Fee: {self.total_fee:,}",
            f"Time: {self.elapsed_ms:.1f}ms (budget {self.time_budget_ms}ms, "
            f"stopped by {self.stopped_by.value})",
            f"Offered: {s.offered}, admitted: {s.admitted}, replaced: {s.replaced}, "
            f"rejected: {s.rejected}, invalid: {s.invalid}, evicted: {s.evicted}",
            "",
            "Selected transactions:",
        ]
        for tx in self.items:
            lines.append(
                f"  {tx.id} size={tx.size} fee={tx.fee} density={tx.density:.3f}"
            )
        return "\n".join(lines)

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data["count"] = self.count
        return data
