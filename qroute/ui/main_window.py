"""Button-grid window for tracing learned routes."""

import os
import sys
from typing import Dict, Optional

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QVBoxLayout, QHBoxLayout, QGridLayout, QWidget,
    QPushButton, QLabel, QTextEdit, QStatusBar, QMessageBox
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QColor

from ..app.controller import RouteController
from ..app.fsm import RouteState
from ..domain.path import split_route
from ..domain.types import ConfigurationError

CELL_COLORS = {
    "empty": QColor("white"),
    "obstacle": QColor("indianred"),
    "goal": QColor("yellow"),
    "route": QColor("green"),
}


class MainWindow(QMainWindow):
    """One button per layout cell; clicking a cell traces its route to the goal."""

    def __init__(self, controller: RouteController):
        super().__init__()
        self.controller = controller
        self.cell_buttons: Dict[str, QPushButton] = {}

        self.setWindowTitle("QRoute - Q-Learning Route Finder")
        self.setMinimumSize(640, 480)

        self._create_ui()
        self._setup_connections()
        self._reset_colors()
        self._update_status_message()

    def _create_ui(self):
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)

        controls_layout = QHBoxLayout()
        self.retrain_btn = QPushButton("Retrain")
        self.goal_label = QLabel()
        controls_layout.addWidget(self.retrain_btn)
        controls_layout.addWidget(self.goal_label)
        controls_layout.addStretch()
        main_layout.addLayout(controls_layout)

        grid_layout = QGridLayout()
        for row, cells in enumerate(self.controller.scenario.layout):
            for col, cell in enumerate(cells):
                if not cell:
                    continue
                button = QPushButton(cell)
                button.setMinimumSize(56, 56)
                grid_layout.addWidget(button, row, col)
                self.cell_buttons[cell] = button
        main_layout.addLayout(grid_layout)

        self.output = QTextEdit()
        self.output.setReadOnly(True)
        main_layout.addWidget(self.output, 1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

    def _setup_connections(self):
        for cell, button in self.cell_buttons.items():
            button.clicked.connect(lambda checked=False, name=cell: self._on_cell_clicked(name))
        self.retrain_btn.clicked.connect(self._on_retrain_clicked)

        fsm = self.controller.fsm
        for state in RouteState:
            fsm.on_state_enter(state, lambda context: self._update_status_message())

    def _set_cell_color(self, cell: str, color: QColor):
        button = self.cell_buttons.get(cell)
        if button is not None:
            button.setStyleSheet(f"background-color: {color.name()};")

    def _reset_colors(self):
        scenario = self.controller.scenario
        for cell in self.cell_buttons:
            if cell in scenario.obstacles:
                self._set_cell_color(cell, CELL_COLORS["obstacle"])
            elif cell == scenario.goal:
                self._set_cell_color(cell, CELL_COLORS["goal"])
            else:
                self._set_cell_color(cell, CELL_COLORS["empty"])
        self.goal_label.setText(f"Goal: '{scenario.goal}'")

    def _on_cell_clicked(self, cell: str):
        self._reset_colors()
        result = self.controller.trace(cell)
        self.output.clear()
        self.output.append(f"Clicked: {cell}")
        self.output.append(result.text)
        if result.found:
            for name in split_route(result.text):
                self._set_cell_color(name, CELL_COLORS["route"])

    def _on_retrain_clicked(self):
        try:
            self.controller.load_scenario(self.controller.scenario)
            result = self.controller.train()
        except ConfigurationError as e:
            QMessageBox.critical(self, "Training failed", str(e))
            return
        self._reset_colors()
        self.output.clear()
        self.output.append(self.controller.policy_text())
        self.output.append(f"{result.total_episodes} episodes, {result.goal_rate:.1%} reached the goal")

    def _update_status_message(self):
        self.status_bar.showMessage(self.controller.fsm.get_state_description())


def run_app(controller: RouteController, argv: Optional[list] = None) -> int:
    """Train the loaded scenario and run the window until it is closed."""
    os.environ.setdefault('QT_AUTO_SCREEN_SCALE_FACTOR', '0')
    os.environ.setdefault('QT_SCALE_FACTOR', '1')

    QApplication.setHighDpiScaleFactorRoundingPolicy(Qt.HighDpiScaleFactorRoundingPolicy.Floor)
    app = QApplication.instance() or QApplication(argv if argv is not None else sys.argv)
    app.setApplicationName("QRoute")

    controller.train()
    window = MainWindow(controller)
    window.show()
    return app.exec()
