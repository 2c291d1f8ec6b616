"""Graph container holding the states, actions and outcomes that training updates in place."""

import logging
from typing import Optional, List, Dict, Set, Iterable

from .types import State, Action, ActionName, ActionResult, ConfigurationError

logger = logging.getLogger(__name__)


class QGraph:
    """
    Ordered collection of states with a name lookup and a set of end states.

    State order matters: it decides which state a uniform random episode start
    maps to and the order of policy and structure printouts.
    """

    def __init__(self, end_states: Optional[Iterable[str]] = None):
        self.states: List[State] = []
        self.lookup: Dict[str, State] = {}
        self.end_states: Set[str] = set(end_states or ())

    def add_state(self, state: State) -> State:
        """
        Register a state.

        Raises:
            ConfigurationError: If a state with the same name already exists
        """
        if state.name in self.lookup:
            raise ConfigurationError(f"Duplicate state name: {state.name}")
        self.states.append(state)
        self.lookup[state.name] = state
        return state

    def get_state(self, name: str) -> Optional[State]:
        return self.lookup.get(name)

    def add_end_state(self, name: str) -> None:
        self.end_states.add(name)

    def connect(self, source: str, target: str, reward: float = 0.0,
                probability: float = 1.0) -> Action:
        """Add a single-outcome action from source to target, registering source if needed."""
        state = self.get_state(source) or self.add_state(State(source))
        action = Action(source, ActionName(source, target))
        action.add_outcome(ActionResult(source, target, probability=probability, reward=reward))
        state.add_action(action)
        return action

    def iter_actions(self):
        for state in self.states:
            for action in state.actions:
                yield state, action

    def unknown_targets(self) -> List[str]:
        """Outcome targets that are neither registered states nor end states."""
        missing = []
        for _, action in self.iter_actions():
            for outcome in action.outcomes:
                name = outcome.target
                if name not in self.lookup and name not in self.end_states and name not in missing:
                    missing.append(name)
        return missing

    def reset_q_values(self) -> None:
        for _, action in self.iter_actions():
            for outcome in action.outcomes:
                outcome.q_value = 0.0

    def __len__(self) -> int:
        return len(self.states)

    def __contains__(self, name: str) -> bool:
        return name in self.lookup


def validate_graph(graph: QGraph, warn_on_anomaly: bool = True) -> None:
    """
    Check every action before training.

    Raises:
        ConfigurationError: If an action has no outcomes or its probabilities do not sum to 1
    """
    for _, action in graph.iter_actions():
        action.validate_probability()

    if warn_on_anomaly:
        for name in graph.unknown_targets():
            logger.warning("Target state %s is not registered; its value defaults to 0", name)
