"""
Status workflows (``payroll_kernel.domain.workflow``).

A workflow is a small declared state machine: named states, the actions
that move between them, and optional guards.  The staff payroll status
(Pending -> Ready -> Paid, with Paid -> Pending as revert) is declared
with these types in ``payroll_modules.staff_pay.workflows``; the command
layer asks the workflow whether an action is allowed rather than
hard-coding the rules.

Guards carry a predicate over the subject (for payroll, a staff member's
month summary).  A guard without a predicate documents a precondition the
state itself already implies.

Kernel domain layer: pure value objects, no I/O.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from payroll_kernel.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Guard:
    name: str
    description: str
    check: Callable[[Any], bool] | None = field(default=None, compare=False)

    def allows(self, subject: Any) -> bool:
        return self.check is None or bool(self.check(subject))


@dataclass(frozen=True)
class Transition:
    """``from_state --action--> to_state``.

    ``posts_entry`` marks the transition that writes a salary record.
    """

    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    posts_entry: bool = False


@dataclass(frozen=True)
class Workflow:
    """Immutable state machine definition.

    Raises ``ValueError`` on construction when the initial state or any
    transition endpoint is not a declared state, or when two transitions
    share the same (state, action) pair.
    """

    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def __post_init__(self) -> None:
        declared = set(self.states)
        if self.initial_state not in declared:
            raise ValueError(
                f"{self.name}: initial state {self.initial_state!r} is not declared"
            )
        seen: set[tuple[str, str]] = set()
        for t in self.transitions:
            undeclared = {t.from_state, t.to_state} - declared
            if undeclared:
                raise ValueError(
                    f"{self.name}: {t.action!r} uses undeclared state(s) {sorted(undeclared)}"
                )
            key = (t.from_state, t.action)
            if key in seen:
                raise ValueError(f"{self.name}: duplicate action {t.action!r} from {t.from_state!r}")
            seen.add(key)

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        return next(
            (t for t in self.transitions if t.from_state == from_state and t.action == action),
            None,
        )

    def actions_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def apply(
        self, state: str, action: str, *, subject_id: str, subject: Any = None,
    ) -> Transition:
        """Return the transition for ``action`` from ``state``.

        Raises:
            InvalidTransitionError: no such transition, or its guard
                rejects ``subject``.
        """
        transition = self.find_transition(state, action)
        if transition is None or (
            transition.guard is not None and not transition.guard.allows(subject)
        ):
            raise InvalidTransitionError(subject_id, state, action)
        return transition
