"""Console entry point for QRoute."""

import argparse
import logging
import sys
import time
from typing import Optional, List

from .app.controller import RouteController
from .domain.types import ConfigurationError, pretty
from .utils.scenario_serialization import Scenario, list_bundled_scenarios

DEFAULT_SCENARIO = "grid_5x4"
MENU_SCENARIO = "grid_4x4"


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--scenario", type=str, default=None,
                        help=f"Bundled scenario name (default: {DEFAULT_SCENARIO})")
    common.add_argument("--file", type=str, help="Path to a scenario JSON file")
    common.add_argument("--goal", type=str, help="Override the scenario goal")
    common.add_argument("--episodes", type=int, help="Number of training episodes")
    common.add_argument("--alpha", type=float, help="Learning rate in (0, 1]")
    common.add_argument("--gamma", type=float, help="Discount factor in [0, 1]")
    common.add_argument("--max-steps", type=int, help="Step cap per episode")
    common.add_argument("--seed", type=int, help="Random seed for reproducible training")
    common.add_argument("--quiet", action="store_true", help="Do not log training anomalies")
    common.add_argument("--verbose", action="store_true", help="Log training progress")

    parser = argparse.ArgumentParser(prog="qroute", description="Tabular Q-learning route finder")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list", help="List bundled scenarios")
    subparsers.add_parser("train", parents=[common], help="Train and print the learned structure and policy")
    path_parser = subparsers.add_parser("path", parents=[common], help="Train and print routes to the goal")
    path_parser.add_argument("starts", nargs="+", help="Start state names")
    subparsers.add_parser("menu", parents=[common], help="Interactive goal picker on a letter grid")
    subparsers.add_parser("gui", parents=[common], help="Open the button-grid window")
    return parser


def config_overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    if args.episodes is not None:
        overrides["episodes"] = args.episodes
    if args.alpha is not None:
        overrides["learning_rate"] = args.alpha
    if args.gamma is not None:
        overrides["discount_factor"] = args.gamma
    if args.max_steps is not None:
        overrides["max_steps_per_episode"] = args.max_steps
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.quiet:
        overrides["warn_on_anomaly"] = False
    return overrides


def load(controller: RouteController, args: argparse.Namespace, default: str = DEFAULT_SCENARIO,
         goal: Optional[str] = None) -> None:
    goal = goal or args.goal
    if args.file:
        controller.load_file(args.file, goal)
    else:
        controller.load_bundled(args.scenario or default, goal)


def format_layout(scenario: Scenario) -> str:
    return "\n".join("   ".join(row) for row in scenario.layout)


def run_list() -> int:
    for name, scenario in list_bundled_scenarios():
        print(f"{name:<12} goal {scenario.goal:<3} {scenario.description}")
    return 0


def run_train(args: argparse.Namespace) -> int:
    controller = RouteController(config_overrides(args))
    load(controller, args)
    result = controller.train()
    print(controller.structure_text())
    print(controller.policy_text())
    print(f"Episodes: {result.total_episodes}, reached end state: {result.goal_rate:.1%}, "
          f"truncated: {result.truncated_episodes}")
    return 0


def run_path(args: argparse.Namespace) -> int:
    controller = RouteController(config_overrides(args))
    load(controller, args)
    controller.train()
    print(f"Goal is '{controller.scenario.goal}'")
    for start in args.starts:
        print(f"{start}: {controller.find_path(start)}")
    return 0


def run_menu(args: argparse.Namespace) -> int:
    """Ask for a goal, retrain for it and print the result, until the answer is not a cell."""
    start_time = time.time()
    controller = RouteController(config_overrides(args))
    load(controller, args, default=MENU_SCENARIO)
    scenario = controller.scenario
    print(format_layout(scenario) + "\n\n")

    while True:
        answer = input("Point END: ").strip().upper()
        if answer not in scenario.cells:
            break
        try:
            load(controller, args, default=MENU_SCENARIO, goal=answer)
        except ConfigurationError as e:
            print(f"❌ {e}")
            continue
        controller.train()
        print(controller.structure_text())
        print(controller.policy_text())

    print(f"\n{pretty(time.time() - start_time)} sec.")
    return 0


def run_gui(args: argparse.Namespace) -> int:
    from .ui.main_window import run_app

    controller = RouteController(config_overrides(args))
    load(controller, args)
    return run_app(controller)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the console front end."""
    args = build_parser().parse_args(argv)
    verbose = getattr(args, "verbose", False)
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "train": run_train,
        "path": run_path,
        "menu": run_menu,
        "gui": run_gui,
    }
    try:
        if args.command == "list":
            return run_list()
        return commands[args.command](args)
    except ConfigurationError as e:
        print(f"❌ {e}")
        return 1
    except (KeyboardInterrupt, EOFError):
        print("\n⏹️  Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
