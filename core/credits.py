from typing import Dict, List, Tuple


class CreditLedger:
    """Credits spent by a single audit run, charged phase by phase"""

    def __init__(self, costs: Dict[str, int]):
        self.costs = costs
        self.entries: List[Tuple[str, int]] = []

    @property
    def total(self) -> int:
        return sum(amount for _, amount in self.entries)

    def charge(self, phase: str) -> int:
        amount = self.costs[phase]
        if amount < 0:
            raise ValueError(f"Negative credit cost for phase {phase}")
        self.entries.append((phase, amount))
        return self.total

    def breakdown(self) -> Dict[str, int]:
        return dict(self.entries)
