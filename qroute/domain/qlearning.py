"""Q-Learning training over a state graph.

Episodes start from a uniformly random state and pick uniformly random actions,
so the learned values describe the greedy policy while data is always collected
by a random walk. The update stores into an outcome's raw ``q_value`` while the
current-estimate term of the rule is the probability-weighted ``estimated``
value, and the best future value is the largest ``estimated`` value over every
outcome of every action of the next state.
"""

import logging
from typing import Optional, List, Set

from .graph import QGraph, validate_graph
from .types import (
    QLearningConfig, State, ActionResult, Episode, TrainingResult, ConfigurationError
)
from ..utils import rng as rng_utils

logger = logging.getLogger(__name__)


class QLearningEngine:
    """Trains the outcome values of a graph in place."""

    def __init__(self, graph: QGraph, config: Optional[QLearningConfig] = None,
                 rng: Optional[rng_utils.SeededRNG] = None):
        self.graph = graph
        self.config = config or QLearningConfig()
        if rng is None:
            rng = rng_utils.SeededRNG(self.config.seed) if self.config.seed is not None else rng_utils.default_rng
        self.rng = rng
        self.episodes_completed = 0
        self.training_history: List[Episode] = []
        self._step_cap_events = 0
        self._warned_states: Set[str] = set()

    def validate(self) -> None:
        """
        Check the graph before training.

        Raises:
            ConfigurationError: If the graph is empty or an action's outcome probabilities are invalid
        """
        if not self.graph.states:
            raise ConfigurationError("Graph has no states to train")
        validate_graph(self.graph, warn_on_anomaly=self.config.warn_on_anomaly)

    def max_q(self, state_name: str) -> float:
        """Largest probability-weighted value over all outcomes of all actions of a state."""
        state = self.graph.get_state(state_name)
        if state is None:
            self._warn_missing(state_name, "Warning: state %s is unknown, MaxQ defaults to 0")
            return 0.0

        max_value = None
        for action in state.actions:
            for outcome in action.outcomes:
                if max_value is None or outcome.estimated > max_value:
                    max_value = outcome.estimated

        if max_value is None:
            self._warn_missing(state_name, "Warning: No MaxQ value for stateName %s")
            return 0.0
        return max_value

    def update_q_value(self, result: ActionResult) -> float:
        """Apply the Q-learning rule to a sampled outcome and return its new value."""
        estimated = result.estimated
        max_future = self.max_q(result.target)
        target = result.reward + self.config.discount_factor * max_future
        result.q_value = estimated + self.config.learning_rate * (target - estimated)
        return result.q_value

    def train_episode(self, number: int) -> Episode:
        """Run one random-walk episode, updating every sampled outcome."""
        state: State = self.rng.choice(self.graph.states)
        start = state.name
        action = None
        steps = 0

        while True:
            if steps + 1 > self.config.max_steps_per_episode:
                self._step_cap_events += 1
                if self.config.warn_on_anomaly:
                    logger.warning(
                        "%d !! MAXLOOP state: %s action: %s, maybe your path setup is wrong "
                        "or the end state is too difficult to reach?",
                        self._step_cap_events, state, action)
                return Episode(number, start, steps, "step_cap")

            if not state.actions:
                return Episode(number, start, steps, "dead_end")

            action = self.rng.choice(state.actions)
            result = action.pick_by_probability(self.rng.random())
            self.update_q_value(result)
            steps += 1

            if result.target in self.graph.end_states:
                return Episode(number, start, steps, "goal")

            next_state = self.graph.get_state(result.target)
            if next_state is None:
                return Episode(number, start, steps, "unknown_state")
            state = next_state

    def train(self, episodes: Optional[int] = None) -> TrainingResult:
        """
        Validate the graph and train for the configured number of episodes.

        Args:
            episodes: Override for the configured episode count

        Returns:
            Summary of the run; learned values live on the graph

        Raises:
            ConfigurationError: If validation fails; no value is touched in that case
        """
        self.validate()
        total = episodes if episodes is not None else self.config.episodes
        self._warned_states.clear()

        episodes_list = []
        successful_episodes = 0
        truncated_episodes = 0
        total_steps = 0

        for number in range(total):
            episode = self.train_episode(self.episodes_completed)
            episodes_list.append(episode)
            self.training_history.append(episode)
            self.episodes_completed += 1

            total_steps += episode.steps
            if episode.reached_goal:
                successful_episodes += 1
            elif episode.outcome == "step_cap":
                truncated_episodes += 1

            if (number + 1) % 100 == 0:
                logger.debug("Episode %d: %d/%d episodes reached an end state",
                             number + 1, successful_episodes, number + 1)

        return TrainingResult(
            episodes=episodes_list,
            total_episodes=len(episodes_list),
            successful_episodes=successful_episodes,
            truncated_episodes=truncated_episodes,
            total_steps=total_steps
        )

    def reset(self) -> None:
        """Forget learned values and history."""
        self.graph.reset_q_values()
        self.episodes_completed = 0
        self.training_history.clear()
        self._step_cap_events = 0

    def _warn_missing(self, state_name: str, message: str) -> None:
        # End states are terminal; a zero future value there is expected
        if not self.config.warn_on_anomaly or state_name in self.graph.end_states:
            return
        if state_name in self._warned_states:
            return
        self._warned_states.add(state_name)
        logger.warning(message, state_name)
