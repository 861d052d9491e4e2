"""
Random source adapter for the resolution engine.

The engine only needs randint(a, b). This adapter routes those draws
through the project's DiceRoller so they are:
- Reproducible via seeding
- Logged for observability
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from rolltables.data_models import DiceRoller


class RandomSource(Protocol):
    """Anything that can draw a uniform integer in [a, b], inclusive."""

    def randint(self, a: int, b: int) -> int:
        ...


class DiceRngAdapter:
    """
    Adapter that exposes DiceRoller through the RandomSource interface.

    Usage:
        from rolltables.tables.dice_rng_adapter import DiceRngAdapter
        from rolltables.tables.resolution_engine import ResolutionEngine

        engine = ResolutionEngine(lookup, rng=DiceRngAdapter("TableRoll"))
    """

    def __init__(
        self,
        reason_prefix: str = "Roll table",
        dice_roller: Optional["DiceRoller"] = None,
    ):
        """
        Initialize the adapter.

        Args:
            reason_prefix: Prefix for roll reason logging
            dice_roller: Optional DiceRoller instance. If None, uses singleton.
        """
        self._reason_prefix = reason_prefix
        self._dice_roller = dice_roller
        self._roll_count = 0

    def _get_dice_roller(self) -> "DiceRoller":
        """Get the DiceRoller instance (lazy import to avoid circular deps)."""
        if self._dice_roller is not None:
            return self._dice_roller
        from rolltables.data_models import DiceRoller
        return DiceRoller()

    def _make_reason(self, context: str) -> str:
        """Create a reason string for logging."""
        self._roll_count += 1
        return f"{self._reason_prefix}: {context} (roll #{self._roll_count})"

    def randint(self, a: int, b: int) -> int:
        """
        Return random integer in range [a, b], inclusive.

        Args:
            a: Minimum value (inclusive)
            b: Maximum value (inclusive)

        Returns:
            Random integer in the specified range
        """
        dice = self._get_dice_roller()
        reason = self._make_reason(f"d{b - a + 1}" if a == 1 else f"range({a}-{b})")
        return dice.randint(a, b, reason)

    @property
    def roll_count(self) -> int:
        """Get the number of rolls made through this adapter."""
        return self._roll_count

    def reset_count(self) -> None:
        """Reset the roll counter."""
        self._roll_count = 0
