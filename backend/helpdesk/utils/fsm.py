from __future__ import annotations
"""Simple finite state machine utility for enforcing allowed status transitions.

Usage:
    from helpdesk.utils.fsm import TransitionValidator
    FSM = TransitionValidator({
        'New': {'Processing'},
        'Processing': {'Completed'},
        'Completed': set(),
    })
    FSM.assert_can_transition(current_status, target_status)

Raises InvalidTransition (409) if invalid.
"""
from typing import Dict, Iterable, Set
from helpdesk.errors import InvalidTransition


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    @property
    def states(self) -> Set[str]:
        out = set(self.graph)
        for targets in self.graph.values():
            out |= set(targets)
        return out

    def targets(self, current: str) -> Set[str]:
        return set(self.graph.get(current, set()))

    def is_terminal(self, state: str) -> bool:
        return not self.graph.get(state)

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current: str, target: str):
        if not self.can_transition(current, target):
            raise InvalidTransition(f"Invalid {self.field_name} transition {current} -> {target}")
        return True

    def terminal_states(self) -> Iterable[str]:
        return sorted(s for s in self.states if self.is_terminal(s))


__all__ = ['TransitionValidator']
