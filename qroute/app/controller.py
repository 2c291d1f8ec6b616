"""Application controller connecting the front ends to the route-learning domain."""

import logging
from typing import Optional, List, Dict, Any

from ..domain.graph import QGraph
from ..domain.qlearning import QLearningEngine
from ..domain.path import PathFinder, split_route
from ..domain.policy import policy_report, format_policy, describe_structure
from ..domain.types import (
    QLearningConfig, TrainingResult, PathResult, PolicyEntry, ConfigurationError
)
from ..utils.graph_factory import build_graph, resolve_scenario
from ..utils.scenario_serialization import Scenario, load_scenario, bundled_scenario_path
from ..utils.rng import set_global_seed
from .fsm import RouteStateMachine, RouteState

logger = logging.getLogger(__name__)


class RouteController:
    """
    Owns one scenario at a time: its graph, the training engine and the path finder.

    Hyperparameters come from the scenario's ``config`` block with
    ``config_overrides`` applied on top.
    """

    def __init__(self, config_overrides: Optional[Dict[str, Any]] = None):
        self.config_overrides = dict(config_overrides or {})
        self.fsm = RouteStateMachine()
        self.scenario: Optional[Scenario] = None
        self.graph: Optional[QGraph] = None
        self.engine: Optional[QLearningEngine] = None
        self.path_finder: Optional[PathFinder] = None
        self.last_result: Optional[TrainingResult] = None

    @property
    def config(self) -> Optional[QLearningConfig]:
        return self.engine.config if self.engine is not None else None

    def load_scenario(self, scenario: Scenario, goal: Optional[str] = None) -> QGraph:
        """
        Build a fresh, untrained graph for a scenario.

        Raises:
            ConfigurationError: If the scenario or the merged hyperparameters are invalid
        """
        resolved = resolve_scenario(scenario, goal)
        config = QLearningConfig.from_dict({**resolved.config, **self.config_overrides})
        if config.seed is not None:
            set_global_seed(config.seed)
        graph = build_graph(resolved)

        self.scenario = resolved
        self.graph = graph
        self.engine = QLearningEngine(graph, config)
        self.path_finder = PathFinder(graph, resolved.goal, resolved.obstacles)
        self.last_result = None

        if self.fsm.can_transition(RouteState.IDLE):
            self.fsm.reset_to_idle()

        logger.info("Loaded scenario %s with %d states, goal %s", resolved.name, len(graph), resolved.goal)
        logger.debug("Hyperparameters: %s", config.to_dict())
        return graph

    def load_bundled(self, name: str, goal: Optional[str] = None) -> QGraph:
        return self.load_scenario(load_scenario(bundled_scenario_path(name)), goal)

    def load_file(self, filepath: str, goal: Optional[str] = None) -> QGraph:
        return self.load_scenario(load_scenario(filepath), goal)

    def train(self) -> TrainingResult:
        """
        Train the loaded graph.

        Raises:
            ConfigurationError: If nothing is loaded or the graph fails validation
        """
        if self.engine is None:
            raise ConfigurationError("No scenario loaded")

        self.fsm.start_training()
        try:
            result = self.engine.train()
        except ConfigurationError as e:
            self.fsm.fail_error({"error": str(e)})
            raise

        self.last_result = result
        self.fsm.finish_training({"result": result})
        logger.info("Trained %d episodes, %.1f%% reached an end state",
                    result.total_episodes, result.goal_rate * 100)
        return result

    def trace(self, start: str) -> PathResult:
        if self.path_finder is None:
            raise ConfigurationError("No scenario loaded")
        return self.path_finder.trace(start)

    def find_path(self, start: str) -> str:
        return self.trace(start).text

    def route_tokens(self, start: str) -> List[str]:
        """State names on the route from start, empty when no route exists."""
        result = self.trace(start)
        return split_route(result.text) if result.found else []

    def policy_report(self) -> List[PolicyEntry]:
        return policy_report(self._require_graph())

    def policy_text(self) -> str:
        return format_policy(self._require_graph())

    def structure_text(self) -> str:
        return describe_structure(self._require_graph())

    def _require_graph(self) -> QGraph:
        if self.graph is None:
            raise ConfigurationError("No scenario loaded")
        return self.graph
