"""Trainer timing configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class TrainerSettings:
    """All trainer delays, in milliseconds unless noted."""

    # Opponent replies and the pause after a correct player move
    move_delay_ms: int = 300
    # Entering a variation, before its first move
    variation_delay_ms: int = 800
    # End of a variation, before the next sibling or the mainline
    variation_pause_ms: int = 1000
    # Before handing the board back after a player's side line
    return_delay_ms: int = 2000
    # Per move while replaying a refuted line
    bad_line_delay_ms: int = 2000

    # Session
    session_seconds: float = 10 * 60
    timer_interval_ms: int = 1000
    default_promotion: str = "q"

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, (int, float)) and value < 0:
                raise ValueError(f"{f.name} must be non-negative, got {value}")
        if self.timer_interval_ms <= 0:
            raise ValueError("timer_interval_ms must be positive")
        if self.default_promotion.lower() not in ("q", "r", "b", "n"):
            raise ValueError(f"Invalid promotion piece: {self.default_promotion!r}")

    @classmethod
    def fast(cls, session_seconds: float = 10 * 60) -> TrainerSettings:
        """No delays between steps (tests, batch replays)."""
        return cls(
            move_delay_ms=0,
            variation_delay_ms=0,
            variation_pause_ms=0,
            return_delay_ms=0,
            bad_line_delay_ms=0,
            session_seconds=session_seconds,
        )
