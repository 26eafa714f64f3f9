from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import final

from ._errors import VerificationError


class Problem(enum.Enum):
    MISSING = "missing"
    EXCESS = "excess"


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class UnsatisfiedExpectation:
    mock_name: str
    member: str
    problem: Problem
    expected: str
    count: int
    shortfall: int = 0


@final
@dataclass(frozen=True, kw_only=True, slots=True)
class VerificationReport:
    unsatisfied: tuple[UnsatisfiedExpectation, ...] = field(default_factory=tuple)
    checked: int = 0

    @property
    def passed(self) -> bool:
        return not self.unsatisfied

    def render(self) -> str:
        if self.passed:
            return f"All {self.checked} expectation(s) satisfied"

        qualify = len({e.mock_name for e in self.unsatisfied}) > 1
        totals: dict[tuple[str, str, Problem], int] = {}
        for entry in self.unsatisfied:
            key = (entry.mock_name, entry.member, entry.problem)
            amount = entry.shortfall if entry.problem is Problem.MISSING else entry.count
            totals[key] = totals.get(key, 0) + amount

        lines: list[str] = []
        for (mock_name, member, problem), amount in totals.items():
            if problem is Problem.MISSING:
                line = f"missing {amount} call(s) to '{member}'"
            else:
                line = f"{amount} unexpected extra call(s) to '{member}'"
            lines.append(f"{line} on {mock_name}" if qualify else line)

        return "Unsatisfied expectations:\n" + "\n".join(lines)

    def raise_for_failures(self) -> None:
        if not self.passed:
            raise VerificationError(self)

    def __str__(self) -> str:
        return self.render()
