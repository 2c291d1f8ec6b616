"""Core type definitions for the Q-learning route engine."""

from dataclasses import dataclass, field, fields, asdict
from typing import Optional, List, Dict, Any, Literal

# Why an episode stopped
EpisodeOutcome = Literal["goal", "dead_end", "step_cap", "unknown_state"]

# Sum of outcome probabilities must land within this distance of 1.0
PROBABILITY_TOLERANCE = 0.1

NO_ACTION_NAME = "nothing"

# Joins state names in a rendered route
ROUTE_SEPARATOR = "->"


class ConfigurationError(ValueError):
    """Raised when a graph, scenario or hyperparameter set cannot be trained."""


class TraversalError(RuntimeError):
    """Raised while walking the learned policy; converted to a message by the path finder."""


def pretty(value: float) -> str:
    """Format a number rounded to two decimals without trailing zeros."""
    return f"{round(value, 2):g}"


@dataclass
class ActionName:
    """Display name of an action, usually the edge it follows."""
    source: str
    target: Optional[str] = None

    def __str__(self) -> str:
        if self.target is None:
            return self.source
        return f"from_{self.source}_to_{self.target}"


@dataclass
class ActionResult:
    """One possible outcome of taking an action."""
    source: str
    target: str
    probability: float = 1.0
    reward: float = 0.0
    q_value: float = 0.0

    @property
    def estimated(self) -> float:
        """Learned value weighted by the outcome probability."""
        return self.q_value * self.probability

    def __str__(self) -> str:
        return (f"State {self.target}, Prob. {pretty(self.probability)}, Reward {pretty(self.reward)}, "
                f"PrevState {self.source}, QE {pretty(self.estimated)}")


@dataclass
class Action:
    """A decision available at a source state, leading to one or more outcomes."""
    source: str
    name: Optional[ActionName] = None
    outcomes: List[ActionResult] = field(default_factory=list)

    def add_outcome(self, result: ActionResult) -> None:
        """Append an outcome; order is kept for sampling."""
        self.outcomes.append(result)

    @property
    def target(self) -> Optional[str]:
        """State this action leads to when followed greedily."""
        if self.name is not None and self.name.target is not None:
            return self.name.target
        if self.outcomes:
            return self.outcomes[0].target
        return None

    @property
    def action_name(self) -> str:
        if self.name is not None:
            return str(self.name)
        return str(ActionName(self.source, self.target))

    @property
    def probability_sum(self) -> float:
        return sum(outcome.probability for outcome in self.outcomes)

    def validate_probability(self, tolerance: float = PROBABILITY_TOLERANCE) -> None:
        """Check that outcome probabilities sum to roughly one.

        Raises:
            ConfigurationError: If the action has no outcomes or the sum is off by more than tolerance
        """
        if not self.outcomes:
            raise ConfigurationError(f"Action has no outcomes: {self}")
        if abs(1.0 - self.probability_sum) > tolerance:
            raise ConfigurationError(f"Outcome probabilities do not sum to 1: {self}")

    def pick_by_probability(self, draw: float) -> ActionResult:
        """
        Pick an outcome by walking the cumulative probability.

        Args:
            draw: Uniform sample in [0, 1)

        Returns:
            First outcome with positive probability whose cumulative probability
            reaches the draw, or the last outcome when the sum falls short.
        """
        cumulative = 0.0
        for outcome in self.outcomes:
            cumulative += outcome.probability
            if outcome.probability > 0 and draw <= cumulative:
                return outcome

        if self.outcomes:
            return self.outcomes[-1]

        raise ConfigurationError(f"No outcome to pick for {self}")

    def format_outcomes(self) -> str:
        return "".join(f"     ActionResult {outcome}\n" for outcome in self.outcomes)

    def __str__(self) -> str:
        return (f"ActionName {self.action_name} probability sum: {pretty(self.probability_sum)} "
                f"actionResultCount {len(self.outcomes)}")


@dataclass
class State:
    """A named node of the graph owning its outgoing actions."""
    name: str
    actions: List[Action] = field(default_factory=list)

    def add_action(self, action: Action) -> None:
        self.actions.append(action)

    @property
    def is_dead_end(self) -> bool:
        return not self.actions

    def __str__(self) -> str:
        return f"StateName {self.name}"


@dataclass
class QLearningConfig:
    """Hyperparameters for a training run."""
    episodes: int = 1000
    learning_rate: float = 0.1
    discount_factor: float = 0.9
    max_steps_per_episode: int = 1000
    warn_on_anomaly: bool = True
    seed: Optional[int] = None

    def __post_init__(self):
        if not (0.0 < self.learning_rate <= 1.0):
            raise ConfigurationError(f"learning_rate must be in (0, 1], got {self.learning_rate}")
        if not (0.0 <= self.discount_factor <= 1.0):
            raise ConfigurationError(f"discount_factor must be in [0, 1], got {self.discount_factor}")
        if self.episodes < 1:
            raise ConfigurationError(f"episodes must be positive, got {self.episodes}")
        if self.max_steps_per_episode < 1:
            raise ConfigurationError(f"max_steps_per_episode must be positive, got {self.max_steps_per_episode}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'QLearningConfig':
        """
        Create a config from a dictionary, ignoring unknown keys.

        Raises:
            ConfigurationError: If a known key holds a value of the wrong type or range
        """
        known = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            try:
                known[f.name] = _coerce_config_value(f.name, data[f.name])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Malformed config entry {f.name}: {e}") from e
        return cls(**known)


def _coerce_int(value: Any) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _coerce_config_value(name: str, value: Any) -> Any:
    if name == "warn_on_anomaly":
        if not isinstance(value, bool):
            raise TypeError(f"expected true or false, got {value!r}")
        return value
    if name == "seed":
        return None if value is None else _coerce_int(value)
    if name in ("learning_rate", "discount_factor"):
        if isinstance(value, bool):
            raise TypeError(f"expected a number, got {value!r}")
        return float(value)
    return _coerce_int(value)


@dataclass
class Episode:
    """Record of a single training episode."""
    number: int
    start_state: str
    steps: int
    outcome: EpisodeOutcome

    @property
    def reached_goal(self) -> bool:
        return self.outcome == "goal"


@dataclass
class TrainingResult:
    """Result of a training run."""
    episodes: List[Episode]
    total_episodes: int
    successful_episodes: int
    truncated_episodes: int
    total_steps: int

    @property
    def goal_rate(self) -> float:
        """Share of episodes that ended on an end state."""
        return self.successful_episodes / self.total_episodes if self.total_episodes > 0 else 0.0


@dataclass
class PolicyEntry:
    """Best action of one state, for inspection."""
    state: str
    action_name: str
    value: float

    def __str__(self) -> str:
        return f"From state {self.state} do action {self.action_name}, max QEstimated is {pretty(self.value)}"


@dataclass
class PathResult:
    """Result of following the learned policy from a start state."""
    start: str
    goal: str
    route: List[str] = field(default_factory=list)
    found: bool = False
    message: str = ""

    @property
    def text(self) -> str:
        """Route joined with arrows, or the failure message."""
        if self.found:
            return ROUTE_SEPARATOR.join(self.route)
        return self.message

    @property
    def hops(self) -> int:
        return max(0, len(self.route) - 1)

