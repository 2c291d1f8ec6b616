"""Finite State Machine for route-learning runs."""

from enum import Enum, auto
from typing import Dict, Callable, Optional


class RouteState(Enum):
    """States of a route-learning run."""
    IDLE = auto()
    TRAINING = auto()
    TRAINED = auto()
    ERROR = auto()


class RouteStateMachine:
    """State machine guarding the order of load, train and query operations."""

    def __init__(self):
        self.current_state = RouteState.IDLE
        self._enter_callbacks: Dict[RouteState, Callable[[Optional[Dict]], None]] = {}

        # Define valid state transitions
        self._valid_transitions = {
            RouteState.IDLE: {RouteState.TRAINING},
            RouteState.TRAINING: {RouteState.TRAINED, RouteState.ERROR},
            RouteState.TRAINED: {RouteState.TRAINING, RouteState.IDLE},
            RouteState.ERROR: {RouteState.IDLE, RouteState.TRAINING},
        }

    def on_state_enter(self, state: RouteState, callback: Callable[[Optional[Dict]], None]):
        """Register callback for state entry."""
        self._enter_callbacks[state] = callback

    def can_transition(self, to_state: RouteState) -> bool:
        """Check if transition to target state is valid."""
        return to_state in self._valid_transitions.get(self.current_state, set())

    def transition(self, to_state: RouteState, context: Optional[Dict] = None) -> bool:
        """Attempt to transition to target state."""
        if not self.can_transition(to_state):
            return False

        self.current_state = to_state

        if to_state in self._enter_callbacks:
            self._enter_callbacks[to_state](context)

        return True

    def start_training(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RouteState.TRAINING, context)

    def finish_training(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RouteState.TRAINED, context)

    def fail_error(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RouteState.ERROR, context)

    def reset_to_idle(self, context: Optional[Dict] = None) -> bool:
        return self.transition(RouteState.IDLE, context)

    def is_trained(self) -> bool:
        return self.current_state == RouteState.TRAINED

    def is_error(self) -> bool:
        return self.current_state == RouteState.ERROR

    def get_state_description(self) -> str:
        """Get human-readable state description."""
        descriptions = {
            RouteState.IDLE: "Ready - load a scenario and train",
            RouteState.TRAINING: "Training Q-values",
            RouteState.TRAINED: "Trained - click a cell to trace a route",
            RouteState.ERROR: "Scenario could not be trained",
        }
        return descriptions.get(self.current_state, "Unknown state")
