"""Factory for building trainable graphs from scenarios and letter grids."""

import string
from typing import Optional, List, Iterable

from ..domain.graph import QGraph
from ..domain.types import State, Action, ActionName, ActionResult, ConfigurationError
from .scenario_serialization import Scenario, ActionSpec, OutcomeSpec, GridSpec

# Row/column deltas in up, down, left, right order
NEIGHBOR_DELTAS = [(-1, 0), (1, 0), (0, -1), (0, 1)]


def letter_layout(width: int, height: int) -> List[List[str]]:
    """
    Create a row-major layout of single-letter state names.

    Args:
        width: Number of columns (must be > 0)
        height: Number of rows (must be > 0)

    Returns:
        Rows of names, ``A`` at the top left

    Raises:
        ValueError: If the grid is empty or needs more than 26 names
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
    if width * height > len(string.ascii_uppercase):
        raise ValueError(f"A {width}x{height} grid needs more than 26 letter names")

    letters = string.ascii_uppercase
    return [[letters[row * width + col] for col in range(width)] for row in range(height)]


def grid_neighbors(layout: List[List[str]], row: int, col: int) -> List[str]:
    """Names of the orthogonal neighbors of a cell, in up, down, left, right order."""
    neighbors = []
    for dr, dc in NEIGHBOR_DELTAS:
        r, c = row + dr, col + dc
        if 0 <= r < len(layout) and 0 <= c < len(layout[r]) and layout[r][c]:
            neighbors.append(layout[r][c])
    return neighbors


def create_grid_scenario(layout: List[List[str]], goal: str, walls: Iterable[str] = (),
                         goal_reward: float = 100.0, step_reward: float = -1.0,
                         wall_reward: float = 0.0, link_walls: bool = False,
                         name: Optional[str] = None) -> Scenario:
    """
    Generate a scenario where every open cell can move to its orthogonal neighbors.

    The goal gets no state of its own, it only ends episodes. Walls are left out
    entirely unless ``link_walls`` is set, in which case they become dead-end
    states that neighbors can step into for ``wall_reward``.

    Raises:
        ConfigurationError: If the goal is not a layout cell or is a wall
    """
    walls = set(walls)
    cells = [cell for row in layout for cell in row if cell]
    if goal not in cells:
        raise ConfigurationError(f"Goal {goal} is not part of the layout")
    if goal in walls:
        raise ConfigurationError(f"Goal {goal} is a wall")

    states = []
    actions = []
    for row, cells_in_row in enumerate(layout):
        for col, cell in enumerate(cells_in_row):
            if not cell or cell == goal:
                continue
            if cell in walls:
                if link_walls:
                    states.append(cell)
                continue

            states.append(cell)
            for neighbor in grid_neighbors(layout, row, col):
                if neighbor == goal:
                    reward = goal_reward
                elif neighbor in walls:
                    if not link_walls:
                        continue
                    reward = wall_reward
                else:
                    reward = step_reward
                actions.append(ActionSpec(source=cell, outcomes=[OutcomeSpec(neighbor, 1.0, reward)]))

    grid = GridSpec(walls=sorted(walls), goal_reward=goal_reward, step_reward=step_reward,
                    wall_reward=wall_reward, link_walls=link_walls)
    return Scenario(
        name=name or f"grid_{len(layout[0]) if layout else 0}x{len(layout)}_goal_{goal}",
        goal=goal,
        actions=actions,
        states=states,
        obstacles=sorted(walls),
        layout=layout,
        grid=grid
    )


def resolve_scenario(scenario: Scenario, goal: Optional[str] = None) -> Scenario:
    """
    Return a scenario with concrete actions, optionally retargeted at another goal.

    Grid scenarios are regenerated for the new goal. Scenarios with a literal
    edge list keep their rewards and only change goal and end states.
    """
    goal = goal or scenario.goal
    if scenario.grid is not None and (not scenario.actions or goal != scenario.goal):
        resolved = create_grid_scenario(
            scenario.layout, goal, scenario.grid.walls,
            goal_reward=scenario.grid.goal_reward,
            step_reward=scenario.grid.step_reward,
            wall_reward=scenario.grid.wall_reward,
            link_walls=scenario.grid.link_walls,
            name=scenario.name
        )
        resolved.description = scenario.description
        resolved.config = dict(scenario.config)
        if scenario.obstacles:
            resolved.obstacles = list(scenario.obstacles)
        return resolved

    if goal == scenario.goal:
        return scenario

    return Scenario(
        name=scenario.name,
        goal=goal,
        actions=scenario.actions,
        states=[name for name in scenario.states if name != goal],
        obstacles=scenario.obstacles,
        end_states=[goal],
        layout=scenario.layout,
        description=scenario.description,
        config=scenario.config
    )


def build_graph(scenario: Scenario) -> QGraph:
    """
    Build a fresh graph from a scenario with concrete actions.

    Declared states are registered first, in order; action sources that were not
    declared are registered when first seen.

    Raises:
        ConfigurationError: If a state is declared twice
    """
    if scenario.grid is not None and not scenario.actions:
        scenario = resolve_scenario(scenario)

    graph = QGraph()
    for name in scenario.end_states:
        graph.add_end_state(name)
    for name in scenario.states:
        graph.add_state(State(name))

    for spec in scenario.actions:
        state = graph.get_state(spec.source) or graph.add_state(State(spec.source))
        if spec.name is not None:
            action_name = ActionName(spec.name)
        else:
            action_name = ActionName(spec.source, spec.outcomes[0].target if len(spec.outcomes) == 1 else None)
        action = Action(spec.source, action_name)
        for outcome in spec.outcomes:
            action.add_outcome(ActionResult(spec.source, outcome.target,
                                            probability=outcome.probability, reward=outcome.reward))
        state.add_action(action)

    return graph
