import pytest

from qroute.__main__ import main
from qroute.app.controller import RouteController
from qroute.app.fsm import RouteState, RouteStateMachine
from qroute.domain.path import wall_message
from qroute.domain.types import ConfigurationError
from qroute.utils.scenario_serialization import ActionSpec, OutcomeSpec, Scenario
from qroute.utils import rng as rng_utils

TRAINING = {"episodes": 3000, "seed": 3, "warn_on_anomaly": False}


def test_fsm_transitions():
    fsm = RouteStateMachine()
    entered = []
    fsm.on_state_enter(RouteState.TRAINED, lambda context: entered.append(context))

    assert not fsm.finish_training()
    assert fsm.start_training()
    assert fsm.finish_training({"episodes": 1})
    assert fsm.is_trained()
    assert entered == [{"episodes": 1}]

    assert fsm.start_training()
    assert fsm.fail_error()
    assert fsm.is_error()
    assert fsm.get_state_description() == "Scenario could not be trained"
    assert fsm.reset_to_idle()
    assert fsm.current_state == RouteState.IDLE


def test_queries_need_a_loaded_scenario():
    controller = RouteController()
    with pytest.raises(ConfigurationError):
        controller.train()
    with pytest.raises(ConfigurationError):
        controller.find_path("A")
    with pytest.raises(ConfigurationError):
        controller.policy_text()


def test_trained_5x4_routes_avoid_obstacles():
    controller = RouteController(TRAINING)
    controller.load_bundled("grid_5x4")
    result = controller.train()

    assert controller.fsm.is_trained()
    assert result.total_episodes == 3000
    obstacles = set(controller.scenario.obstacles)
    for start in ["A", "E", "K", "P", "T"]:
        route = controller.route_tokens(start)
        assert route[0] == start
        assert route[-1] == "O"
        assert not obstacles & set(route)

    assert controller.find_path("G") == wall_message("G")
    assert controller.route_tokens("G") == []


def test_retarget_grid_goal():
    controller = RouteController(TRAINING)
    controller.load_bundled("grid_4x4", goal="P")
    controller.train()

    route = controller.route_tokens("A")
    assert route[-1] == "P"
    assert not {"B", "F", "G"} & set(route)

    report = {entry.state: entry for entry in controller.policy_report()}
    assert "P" not in report
    assert report["O"].action_name == "from_O_to_P"


def test_config_overrides_apply_on_top_of_scenario():
    controller = RouteController({"episodes": 7, "learning_rate": 0.5, "seed": 21})
    controller.load_bundled("grid_4x4")
    assert controller.config.seed == 21
    assert rng_utils.default_rng.seed == 21
    assert controller.config.episodes == 7
    assert controller.config.learning_rate == 0.5
    assert controller.config.discount_factor == 0.9


def test_invalid_scenario_moves_to_error_and_recovers():
    bad = Scenario(name="bad", goal="C",
                   actions=[ActionSpec("A", [OutcomeSpec("C", 0.5, 1.0)])])
    controller = RouteController()
    controller.load_scenario(bad)

    with pytest.raises(ConfigurationError):
        controller.train()
    assert controller.fsm.is_error()

    controller.load_bundled("grid_4x4")
    assert controller.fsm.current_state == RouteState.IDLE


def test_cli_list(capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "grid_4x4" in out
    assert "grid_5x4" in out


def test_cli_path(capsys):
    assert main(["path", "--seed", "3", "--episodes", "3000", "--quiet", "A", "G"]) == 0
    out = capsys.readouterr().out
    assert "Goal is 'O'" in out
    assert "A: A->" in out
    assert f"G: {wall_message('G')}" in out


def test_cli_reports_configuration_errors(capsys):
    assert main(["train", "--scenario", "no_such_scenario"]) == 1
    assert "Unknown scenario" in capsys.readouterr().out


def test_cli_menu_retrains_until_answer_is_not_a_cell(capsys, monkeypatch):
    answers = iter(["d", "B", "quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    assert main(["menu", "--seed", "1", "--episodes", "200", "--quiet"]) == 0
    out = capsys.readouterr().out
    assert "A   B   C   D" in out
    assert out.count("** Show Policy **") == 1
    assert "Goal B is a wall" in out
    assert "sec." in out


def test_cli_menu_stops_on_end_of_input(capsys, monkeypatch):
    def closed_stdin(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", closed_stdin)
    assert main(["menu", "--quiet"]) == 1
    assert "Interrupted" in capsys.readouterr().out
