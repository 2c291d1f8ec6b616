"""Reading the learned policy out of a trained graph."""

import math
import numpy as np
from typing import Optional, List, Tuple

from .graph import QGraph
from .types import State, Action, PolicyEntry, NO_ACTION_NAME


def _first_outcome_value(action: Action) -> float:
    if not action.outcomes:
        return -math.inf
    return action.outcomes[0].q_value


def ranked_actions(state: State) -> List[Action]:
    """Actions of a state ordered by their first outcome's value, highest first.

    The sort is stable, so equally valued actions keep their insertion order.
    """
    return sorted(state.actions, key=_first_outcome_value, reverse=True)


def order_actions_by_value(graph: QGraph) -> None:
    """Reorder every state's action list in place using the ranked order."""
    for state in graph.states:
        state.actions[:] = ranked_actions(state)


def best_action(state: State) -> Tuple[Optional[Action], float]:
    """
    Find the action holding the largest probability-weighted outcome value.

    Returns:
        Tuple of (action, value); (None, -inf) for a state without actions
    """
    scored = [(action, max(outcome.estimated for outcome in action.outcomes))
              for action in state.actions if action.outcomes]
    if not scored:
        return None, -math.inf

    values = np.array([value for _, value in scored])
    best_idx = int(np.argmax(values))
    return scored[best_idx][0], float(values[best_idx])


def policy_report(graph: QGraph) -> List[PolicyEntry]:
    """Best action name and value for every state, in state order."""
    entries = []
    for state in graph.states:
        action, value = best_action(state)
        name = action.action_name if action is not None else NO_ACTION_NAME
        entries.append(PolicyEntry(state=state.name, action_name=name, value=value))
    return entries


def format_policy(graph: QGraph) -> str:
    lines = ["** Show Policy **"]
    lines.extend(str(entry) for entry in policy_report(graph))
    return "\n".join(lines) + "\n"


def describe_structure(graph: QGraph) -> str:
    """Render states with their ranked actions and outcomes."""
    lines = ["** Q-Learning structure **"]
    for state in graph.states:
        lines.append(f"State {state.name}")
        for action in ranked_actions(state):
            lines.append(f"  Action {action.action_name}")
            lines.append(action.format_outcomes().rstrip("\n"))
    return "\n".join(line for line in lines if line) + "\n"
