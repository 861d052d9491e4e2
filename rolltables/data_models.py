"""
Shared data structures for the roll table application.

All randomness flows through DiceRoller so rolls are reproducible
when seeded and visible in the run log.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import random


# Oldest draws are dropped once the in-memory roll log is full
MAX_ROLL_LOG_SIZE = 1000


class DiceRoller:
    """
    Centralized randomization interface.
    All dice rolls must go through this class for reproducibility and logging.
    """

    _instance = None
    _seed: Optional[int] = None
    _rng: random.Random = random.Random()
    _roll_log: deque = deque(maxlen=MAX_ROLL_LOG_SIZE)

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def set_seed(cls, seed: int) -> None:
        """Set random seed for reproducibility."""
        cls._seed = seed
        cls._rng.seed(seed)

    @classmethod
    def get_seed(cls) -> Optional[int]:
        return cls._seed

    @classmethod
    def randint(cls, a: int, b: int, reason: str = "") -> int:
        """
        Return a random integer in [a, b], inclusive, and log it.

        Args:
            a: Minimum value (inclusive)
            b: Maximum value (inclusive)
            reason: Why this roll is being made (for logging)
        """
        if a > b:
            raise ValueError(f"Empty range for randint: [{a}, {b}]")

        value = cls._rng.randint(a, b)
        notation = f"1d{b}" if a == 1 else f"range({a}-{b})"
        cls._record(DiceResult(notation=notation, value=value, reason=reason))
        return value

    @classmethod
    def get_roll_log(cls) -> list:
        """Get the most recent draws of the session, oldest first."""
        return list(cls._roll_log)

    @classmethod
    def clear_roll_log(cls) -> None:
        """Clear the roll log."""
        cls._roll_log.clear()

    @classmethod
    def _record(cls, result: "DiceResult") -> None:
        cls._roll_log.append(result)
        from rolltables.observability.run_log import get_run_log

        get_run_log().log_roll(
            notation=result.notation,
            rolls=[result.value],
            modifier=0,
            total=result.value,
            reason=result.reason,
        )


@dataclass
class DiceResult:
    """One logged draw."""
    notation: str
    value: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.notation}: {self.value}"
