from __future__ import annotations

import logging
from typing import Callable, Optional

import psutil


logger = logging.getLogger(__name__)

DEFAULT_FRACTION = 0.8


def process_memory_usage() -> int:
    """Resident set size of the current process, in bytes."""
    return psutil.Process().memory_info().rss


class ProcessingBudget:
    """Memory ceiling for one processing pass.

    `consumed` counts bytes of CSS taken in during the pass. The check compares
    `probe()` (process RSS unless another probe is given) against
    `ceiling * fraction`; it is polled, never enforced mid-item.
    """

    def __init__(self, ceiling: int, fraction: float = DEFAULT_FRACTION, probe: Optional[Callable[[], int]] = None):
        self.ceiling = int(ceiling)
        self.fraction = fraction
        self.probe = probe or process_memory_usage
        self.consumed = 0

    @classmethod
    def from_config(cls, config, probe=None) -> 'ProcessingBudget':
        return cls(config.memory_limit_bytes, config.memory_fraction, probe=probe)

    @property
    def safe_limit(self) -> float:
        return self.ceiling * self.fraction

    def charge(self, nbytes: int) -> None:
        self.consumed += max(0, int(nbytes))

    def usage(self) -> int:
        return int(self.probe())

    def exceeded(self) -> bool:
        if self.ceiling <= 0:
            return False
        used = self.usage()
        if used > self.safe_limit:
            logger.warning('memory limit approaching: %d > %d bytes', used, int(self.safe_limit))
            return True
        return False


class ConsumedBytesProbe:
    """Probe that reports only what the pass has charged to the budget."""

    def __init__(self):
        self.budget: Optional[ProcessingBudget] = None

    def __call__(self) -> int:
        return self.budget.consumed if self.budget else 0


def counting_budget(ceiling: int, fraction: float = DEFAULT_FRACTION) -> ProcessingBudget:
    probe = ConsumedBytesProbe()
    budget = ProcessingBudget(ceiling, fraction, probe=probe)
    probe.budget = budget
    return budget
