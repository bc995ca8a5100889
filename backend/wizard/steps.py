from __future__ import annotations

from enum import Enum
from typing import Callable, Literal, Sequence


class WizardStep(str, Enum):
    budget = "budget"
    borough = "borough"
    neighborhood = "neighborhood"
    map = "map"
    review = "review"


DEFAULT_STEPS: tuple[str, ...] = tuple(s.value for s in WizardStep)

StepStatus = Literal["completed", "current", "upcoming"]


class StepController:
    """
    Linear step sequencer.

    `next()`/`back()` stop at the ends, `go_to()` may jump to any known step and
    silently ignores unknown ones. Validation rules belong to the caller, see
    `can_proceed()`.
    """

    def __init__(
        self,
        steps: Sequence[str] = DEFAULT_STEPS,
        *,
        initial_step: str | None = None,
        on_change: Callable[[str], None] | None = None,
    ) -> None:
        self.steps: tuple[str, ...] = tuple(_key(s) for s in steps)
        if not self.steps:
            raise ValueError("StepController needs at least one step")
        if len(set(self.steps)) != len(self.steps):
            raise ValueError(f"Duplicate step names: {self.steps}")

        initial = _key(initial_step) if initial_step is not None else self.steps[0]
        if initial not in self.steps:
            raise ValueError(f"Unknown initial step: {initial!r}")
        self.initial_step = initial
        self._index = self.steps.index(initial)
        self._on_change = on_change

    @property
    def current_step(self) -> str:
        return self.steps[self._index]

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index == len(self.steps) - 1

    def next(self) -> None:
        if not self.is_last:
            self._move_to(self._index + 1)

    def back(self) -> None:
        if not self.is_first:
            self._move_to(self._index - 1)

    def go_to(self, step: str | int) -> None:
        # bool is an int subclass; True/False are never meant as indexes.
        if isinstance(step, bool):
            return
        if isinstance(step, int):
            if 0 <= step < len(self.steps):
                self._move_to(step)
            return
        key = _key(step)
        if key in self.steps:
            self._move_to(self.steps.index(key))

    def reset(self) -> None:
        self._move_to(self.steps.index(self.initial_step))

    def can_proceed(self, validator: Callable[[], bool] | None = None) -> bool:
        if validator is None:
            return True
        return bool(validator())

    def status(self, step: str) -> StepStatus | None:
        """Progress-stepper state of `step`; None for unknown steps."""
        key = _key(step)
        if key not in self.steps:
            return None
        i = self.steps.index(key)
        if i < self._index:
            return "completed"
        if i == self._index:
            return "current"
        return "upcoming"

    def _move_to(self, index: int) -> None:
        if index == self._index:
            return
        self._index = index
        if self._on_change is not None:
            self._on_change(self.current_step)


def _key(step: str | Enum) -> str:
    return step.value if isinstance(step, Enum) else str(step)
