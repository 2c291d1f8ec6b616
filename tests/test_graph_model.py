import logging

import pytest

from qroute.domain.graph import QGraph, validate_graph
from qroute.domain.types import Action, ActionName, ActionResult, ConfigurationError, State


def make_action(source, *outcomes):
    action = Action(source, ActionName(source))
    for target, probability in outcomes:
        action.add_outcome(ActionResult(source, target, probability=probability))
    return action


def test_duplicate_state_name_is_rejected():
    graph = QGraph()
    graph.add_state(State("A"))
    with pytest.raises(ConfigurationError):
        graph.add_state(State("A"))
    assert [s.name for s in graph.states] == ["A"]


def test_connect_registers_source_and_keeps_action_order():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B", reward=-1)
    graph.connect("A", "C", reward=100)

    state = graph.get_state("A")
    assert [a.target for a in state.actions] == ["B", "C"]
    assert str(state.actions[1].name) == "from_A_to_C"
    assert state.actions[1].outcomes[0].reward == 100
    assert "A" in graph and "B" not in graph


def test_estimated_value_is_weighted_by_probability():
    result = ActionResult("A", "B", probability=0.25, reward=1.0, q_value=8.0)
    assert result.estimated == pytest.approx(2.0)


def test_probability_sum_within_tolerance_passes():
    graph = QGraph()
    state = graph.add_state(State("A"))
    state.add_action(make_action("A", ("B", 0.5), ("C", 0.45)))
    validate_graph(graph)


def test_probability_sum_outside_tolerance_fails():
    graph = QGraph()
    state = graph.add_state(State("A"))
    state.add_action(make_action("A", ("B", 0.5), ("C", 0.35)))
    with pytest.raises(ConfigurationError, match="do not sum to 1"):
        validate_graph(graph)


def test_action_without_outcomes_fails_validation():
    graph = QGraph()
    state = graph.add_state(State("A"))
    state.add_action(Action("A"))
    with pytest.raises(ConfigurationError):
        validate_graph(graph)


def test_unknown_targets_are_logged_not_rejected(caplog):
    graph = QGraph(end_states={"G"})
    graph.connect("A", "G")
    graph.connect("A", "X")
    assert graph.unknown_targets() == ["X"]

    with caplog.at_level(logging.WARNING):
        validate_graph(graph)
    assert "X is not registered" in caplog.text


def test_pick_by_probability_boundaries():
    action = make_action("A", ("X", 0.0), ("Y", 0.6), ("Z", 0.39))

    assert action.pick_by_probability(0.0).target == "Y"
    assert action.pick_by_probability(0.6).target == "Y"
    assert action.pick_by_probability(0.61).target == "Z"
    # cumulative probability only reaches 0.99
    assert action.pick_by_probability(0.999).target == "Z"


def test_pick_by_probability_always_returns_an_outcome():
    action = make_action("A", ("B", 0.3), ("C", 0.3), ("D", 0.3))
    for i in range(100):
        assert action.pick_by_probability(i / 100).target in {"B", "C", "D"}


def test_pick_from_empty_action_fails():
    with pytest.raises(ConfigurationError):
        Action("A").pick_by_probability(0.5)


def test_reset_q_values():
    graph = QGraph()
    action = graph.connect("A", "B")
    action.outcomes[0].q_value = 42.0
    graph.reset_q_values()
    assert action.outcomes[0].q_value == 0.0
