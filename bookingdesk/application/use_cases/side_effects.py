from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass(frozen=True)
class PendingEffect:
    name: str
    func: Callable[..., Any]
    args: tuple[Any, ...] = ()
    booking_id: str | None = None


@dataclass
class SideEffectQueue:
    """Work queued after a state change has been committed.

    Each effect runs in isolation: a failure is logged and the remaining
    effects still run. Nothing is re-raised to the caller.
    """

    effects: list[PendingEffect] = field(default_factory=list)

    def add(self, name: str, func: Callable[..., Any], *args: Any, booking_id: str | None = None) -> None:
        self.effects.append(PendingEffect(name=name, func=func, args=args, booking_id=booking_id))

    def extend(self, other: "SideEffectQueue") -> None:
        self.effects.extend(other.effects)

    def __len__(self) -> int:
        return len(self.effects)

    def __bool__(self) -> bool:
        return bool(self.effects)

    def names(self) -> list[str]:
        return [effect.name for effect in self.effects]

    def run(self) -> int:
        """Run every queued effect once. Returns the number that failed."""
        logger = logging.getLogger(__name__)
        effects, self.effects = self.effects, []
        failures = 0
        for effect in effects:
            try:
                effect.func(*effect.args)
            except Exception as e:
                failures += 1
                logger.exception(
                    "Side effect failed",
                    extra={"effect": effect.name, "booking_id": effect.booking_id, "error": str(e)},
                )
        return failures
