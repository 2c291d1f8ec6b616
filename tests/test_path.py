from qroute.domain.graph import QGraph
from qroute.domain.path import (
    PathFinder, hop_limit_message, join_route, split_route, unreachable_message, wall_message
)
from qroute.domain.qlearning import QLearningEngine
from qroute.domain.types import QLearningConfig, State


def three_state_graph():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B", reward=-1)
    graph.connect("B", "C", reward=100)
    graph.connect("B", "A", reward=-1)
    return graph


def test_start_equal_to_goal_is_a_single_state_route():
    finder = PathFinder(three_state_graph(), "C")
    result = finder.trace("C")
    assert result.found
    assert result.route == ["C"]
    assert finder.find_path("C") == "C"


def test_obstacle_or_empty_start_reports_wall():
    finder = PathFinder(three_state_graph(), "C", obstacles={"B"})
    assert finder.find_path("B") == wall_message("B")
    assert finder.find_path("") == wall_message("")


def test_trained_graph_routes_to_goal():
    graph = three_state_graph()
    QLearningEngine(graph, QLearningConfig(episodes=500, seed=4)).train()

    result = PathFinder(graph, "C").trace("A")
    assert result.found
    assert result.text == "A->B->C"
    assert result.hops == 2


def test_goal_registered_as_dead_end_state_still_routes():
    graph = QGraph(end_states={"C"})
    for name in ["A", "B", "C"]:
        graph.add_state(State(name))
    graph.connect("A", "B", reward=-1)
    graph.connect("B", "C", reward=100)
    graph.connect("B", "A", reward=-1)

    result = QLearningEngine(graph, QLearningConfig(episodes=500, seed=4)).train()
    assert any(ep.outcome == "dead_end" for ep in result.episodes)

    finder = PathFinder(graph, "C")
    assert finder.find_path("A") == "A->B->C"
    assert finder.find_path("C") == "C"


def test_route_text_tokenizes_back_to_route():
    graph = three_state_graph()
    QLearningEngine(graph, QLearningConfig(episodes=500, seed=4)).train()

    result = PathFinder(graph, "C").trace("A")
    assert split_route(result.text) == result.route


def test_obstacle_on_best_action_falls_back_to_second():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B", reward=-1)
    graph.connect("A", "C", reward=100)

    # untrained values tie, so the obstacle edge ranks first
    assert PathFinder(graph, "C", obstacles={"B"}).find_path("A") == "A->C"

    QLearningEngine(graph, QLearningConfig(episodes=200, seed=5)).train()
    assert PathFinder(graph, "C", obstacles={"B"}).find_path("A") == "A->C"


def test_two_obstacles_ahead_is_unreachable():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B")
    graph.connect("A", "D")
    graph.connect("A", "C")

    result = PathFinder(graph, "C", obstacles={"B", "D"}).trace("A")
    assert not result.found
    assert result.text == unreachable_message("A", "C")


def test_replan_skips_every_obstacle():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B")
    graph.connect("A", "D")
    graph.connect("A", "C")

    assert PathFinder(graph, "C", obstacles={"B", "D"}, replan=True).find_path("A") == "A->C"


def test_single_action_into_obstacle_is_unreachable():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B")
    assert PathFinder(graph, "C", obstacles={"B"}).find_path("A") == unreachable_message("A", "C")


def test_unknown_start_is_unreachable():
    finder = PathFinder(three_state_graph(), "C")
    assert finder.find_path("Z") == unreachable_message("Z", "C")


def test_dead_end_on_the_way_is_unreachable():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B")
    graph.connect("B", "X")
    result = PathFinder(graph, "C").trace("A")
    assert not result.found
    assert result.route == ["A", "B", "X"]


def test_policy_cycle_stops_at_hop_limit():
    graph = QGraph(end_states={"C"})
    graph.connect("A", "B")
    graph.connect("B", "A")

    result = PathFinder(graph, "C", max_hops=10).trace("A")
    assert not result.found
    assert result.text == hop_limit_message("A", "C", 10)
    assert result.hops == 10


def test_split_and_join_route():
    assert split_route("A->B->C") == ["A", "B", "C"]
    assert split_route(" A -> B ") == ["A", "B"]
    assert join_route(["A", "B", "C"]) == "A->B->C"
