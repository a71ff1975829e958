from collections.abc import Iterable
from dataclasses import dataclass

from codebell.notifiers.base import DeliveryOutcome


@dataclass(frozen=True)
class DispatchResult:
    outcomes: tuple[DeliveryOutcome, ...]  # selection order

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def summary(self) -> str:
        return f"{self.succeeded}/{self.total} platform(s) notified"

    def breakdown(self) -> list[str]:
        lines = []
        for o in self.outcomes:
            status = "✓ Success" if o.success else f"✗ Failed - {o.error}"
            lines.append(f"{o.platform}: {status}")
        return lines

    def render(self) -> str:
        """Summary line, blank line, then one line per platform."""
        return "\n".join([self.summary, "", *self.breakdown()])


def aggregate(outcomes: Iterable[DeliveryOutcome]) -> DispatchResult:
    return DispatchResult(outcomes=tuple(outcomes))
