"""Route reconstruction by following the learned policy."""

import logging
import re
from typing import Iterable, List

from .graph import QGraph
from .policy import ranked_actions
from .types import PathResult, TraversalError, ROUTE_SEPARATOR

logger = logging.getLogger(__name__)

DEFAULT_MAX_HOPS = 1000


def wall_message(start: str) -> str:
    return f"'{start}' is a wall or does not exist"


def unreachable_message(start: str, goal: str) -> str:
    return f"'{start}' cannot reach '{goal}': destination unreachable"


def hop_limit_message(start: str, goal: str, max_hops: int) -> str:
    return f"'{start}' cannot reach '{goal}': no route within {max_hops} hops (policy cycle)"


class PathFinder:
    """
    Walks a trained graph from a start state to the goal.

    At every state the highest ranked action is taken. When its target is an
    obstacle the second ranked action is taken instead; there is no deeper
    fallback unless ``replan`` is set, in which case the first ranked action
    not leading into an obstacle is used.
    """

    def __init__(self, graph: QGraph, goal: str, obstacles: Iterable[str] = (),
                 max_hops: int = DEFAULT_MAX_HOPS, replan: bool = False):
        self.graph = graph
        self.goal = goal
        self.obstacles = frozenset(obstacles)
        self.max_hops = max_hops
        self.replan = replan

    def is_obstacle(self, name: str) -> bool:
        return name in self.obstacles

    def next_step(self, current: str) -> str:
        """
        Choose the state that follows current under the learned policy.

        Raises:
            TraversalError: If current is unknown or no permitted action exists
        """
        state = self.graph.get_state(current)
        if state is None:
            raise TraversalError(f"State {current} is not in the graph")

        ranked = ranked_actions(state)
        if self.replan:
            for action in ranked:
                if action.target is not None and not self.is_obstacle(action.target):
                    return action.target
            raise TraversalError(f"Every action from {current} leads into an obstacle")

        if not ranked:
            raise TraversalError(f"State {current} has no actions")

        target = ranked[0].target
        if target is not None and self.is_obstacle(target):
            if len(ranked) < 2:
                raise TraversalError(f"Best action from {current} hits obstacle {target} and no alternative exists")
            target = ranked[1].target
            if target is not None and self.is_obstacle(target):
                raise TraversalError(f"Both best actions from {current} lead into obstacles")

        if target is None:
            raise TraversalError(f"Action from {current} has no target")
        return target

    def trace(self, start: str) -> PathResult:
        """Follow the policy from start; failures come back as a message, never raised."""
        if not start or self.is_obstacle(start):
            return PathResult(start=start, goal=self.goal, message=wall_message(start))

        route = [start]
        current = start
        try:
            while current != self.goal:
                if len(route) - 1 >= self.max_hops:
                    logger.warning("Route from %s exceeded %d hops", start, self.max_hops)
                    return PathResult(start=start, goal=self.goal, route=route,
                                      message=hop_limit_message(start, self.goal, self.max_hops))
                current = self.next_step(current)
                route.append(current)
        except TraversalError as e:
            logger.info("No route from %s to %s: %s", start, self.goal, e)
            return PathResult(start=start, goal=self.goal, route=route,
                              message=unreachable_message(start, self.goal))

        return PathResult(start=start, goal=self.goal, route=route, found=True)

    def find_path(self, start: str) -> str:
        """Route text such as ``A->B->C`` or a failure message."""
        return self.trace(start).text


def split_route(text: str) -> List[str]:
    """Split a rendered route back into state names."""
    return [token.strip() for token in re.split(r"[->]", text) if token.strip()]


def join_route(tokens: Iterable[str]) -> str:
    return ROUTE_SEPARATOR.join(tokens)
