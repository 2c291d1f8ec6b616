"""
Scenario serialization utilities for saving and loading route-learning setups.
A scenario is the static edge list a graph is built from, plus goal and obstacles.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Any

from ..domain.types import ConfigurationError

logger = logging.getLogger(__name__)

SCENARIO_VERSION = "1.0"


@dataclass
class OutcomeSpec:
    """One declared outcome of an action."""
    target: str
    probability: float = 1.0
    reward: float = 0.0


@dataclass
class ActionSpec:
    """One declared action; a single certain outcome is the common case."""
    source: str
    outcomes: List[OutcomeSpec]
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.name is None and len(self.outcomes) == 1 and self.outcomes[0].probability == 1.0:
            outcome = self.outcomes[0]
            return {'from': self.source, 'to': outcome.target, 'reward': outcome.reward}
        data = {
            'from': self.source,
            'outcomes': [
                {'to': o.target, 'probability': o.probability, 'reward': o.reward}
                for o in self.outcomes
            ]
        }
        if self.name is not None:
            data['name'] = self.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActionSpec':
        """Accept either the ``to`` shorthand or an explicit ``outcomes`` list."""
        try:
            source = data['from']
            if 'outcomes' in data:
                outcomes = [
                    OutcomeSpec(
                        target=o['to'],
                        probability=float(o.get('probability', 1.0)),
                        reward=float(o.get('reward', 0.0))
                    )
                    for o in data['outcomes']
                ]
            else:
                outcomes = [OutcomeSpec(
                    target=data['to'],
                    probability=float(data.get('probability', 1.0)),
                    reward=float(data.get('reward', 0.0))
                )]
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed action entry {data!r}: {e}") from e
        return cls(source=source, outcomes=outcomes, name=data.get('name'))


@dataclass
class GridSpec:
    """Rules for generating actions from a letter layout instead of listing them."""
    walls: List[str] = field(default_factory=list)
    goal_reward: float = 100.0
    step_reward: float = -1.0
    wall_reward: float = 0.0
    link_walls: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'walls': list(self.walls),
            'goal_reward': self.goal_reward,
            'step_reward': self.step_reward,
            'wall_reward': self.wall_reward,
            'link_walls': self.link_walls
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GridSpec':
        return cls(
            walls=list(data.get('walls', [])),
            goal_reward=float(data.get('goal_reward', 100.0)),
            step_reward=float(data.get('step_reward', -1.0)),
            wall_reward=float(data.get('wall_reward', 0.0)),
            link_walls=bool(data.get('link_walls', False))
        )


class Scenario:
    """Container for a graph setup with metadata."""

    def __init__(self, name: str, goal: str, actions: Optional[List[ActionSpec]] = None,
                 states: Optional[List[str]] = None, obstacles: Optional[List[str]] = None,
                 end_states: Optional[List[str]] = None, layout: Optional[List[List[str]]] = None,
                 grid: Optional[GridSpec] = None, description: str = "",
                 config: Optional[Dict[str, Any]] = None):
        self.name = name
        self.goal = goal
        self.actions = actions or []
        self.states = states or []
        self.obstacles = obstacles or []
        self.end_states = end_states if end_states else [goal]
        self.layout = layout or []
        self.grid = grid
        self.description = description
        self.config = config or {}
        self.created_at = datetime.now().isoformat()

    @property
    def cells(self) -> List[str]:
        """Layout cell names in row-major order."""
        return [cell for row in self.layout for cell in row if cell]

    def to_dict(self) -> Dict[str, Any]:
        """Convert scenario to dictionary for serialization."""
        data = {
            'name': self.name,
            'description': self.description,
            'goal': self.goal,
            'end_states': list(self.end_states),
            'obstacles': list(self.obstacles),
            'layout': [list(row) for row in self.layout],
            'states': list(self.states),
            'actions': [spec.to_dict() for spec in self.actions],
            'created_at': self.created_at,
            'version': SCENARIO_VERSION
        }
        if self.grid is not None:
            data['grid'] = self.grid.to_dict()
        if self.config:
            data['config'] = dict(self.config)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Scenario':
        """
        Create a scenario from a dictionary.

        Raises:
            ConfigurationError: If required keys are missing or malformed
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Scenario payload must be a JSON object")
        if 'goal' not in data:
            raise ConfigurationError("Scenario payload has no goal")

        grid = GridSpec.from_dict(data['grid']) if data.get('grid') is not None else None
        scenario = cls(
            name=data.get('name', ''),
            goal=data['goal'],
            actions=[ActionSpec.from_dict(a) for a in data.get('actions', [])],
            states=list(data.get('states', [])),
            obstacles=list(data.get('obstacles', [])),
            end_states=list(data.get('end_states', [])),
            layout=[list(row) for row in data.get('layout', [])],
            grid=grid,
            description=data.get('description', ''),
            config=data.get('config')
        )
        scenario.created_at = data.get('created_at', datetime.now().isoformat())
        return scenario


def save_scenario(scenario: Scenario, filepath: str) -> bool:
    """Save scenario to a JSON file."""
    try:
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(filepath, 'w') as f:
            json.dump(scenario.to_dict(), f, indent=2)
        return True
    except OSError as e:
        logger.error("Error saving scenario: %s", e)
        return False


def load_scenario(filepath: str) -> Scenario:
    """
    Load scenario from a JSON file.

    Raises:
        ConfigurationError: If the file is missing or its content is not a valid scenario
    """
    try:
        with open(filepath, 'r') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read scenario {filepath}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Scenario {filepath} is not valid JSON: {e}") from e
    return Scenario.from_dict(data)


def get_scenarios_directory() -> str:
    """Get the directory holding the bundled scenarios."""
    return str(Path(__file__).parent.parent / "scenarios")


def bundled_scenario_path(name: str) -> str:
    """
    Resolve a bundled scenario name such as ``grid_5x4`` to its file.

    Raises:
        ConfigurationError: If no bundled scenario has that name
    """
    path = Path(get_scenarios_directory()) / f"{name}.json"
    if not path.is_file():
        available = ", ".join(stem for stem, _ in list_bundled_scenarios())
        raise ConfigurationError(f"Unknown scenario '{name}'. Available: {available}")
    return str(path)


def list_bundled_scenarios() -> List[Tuple[str, Scenario]]:
    """List all bundled scenarios with their metadata, sorted by name."""
    scenarios = []
    for filepath in sorted(Path(get_scenarios_directory()).glob("*.json")):
        try:
            scenarios.append((filepath.stem, load_scenario(str(filepath))))
        except ConfigurationError as e:
            logger.error("Skipping scenario %s: %s", filepath.name, e)
    return scenarios
