"""
Entry point for the Big Blue hand controller GUI.

This module is the operator's window: four direction buttons, spiral search
controls and the connect button. It holds no link or drive state of its own;
every button forwards to ``RemoteCore`` and the window re-renders from the
core's signals.

Key responsibilities:
- Build the control window and keep buttons enabled only while connected
- Forward press/release edges (buttons and arrow keys) to the core
- Relabel spiral and connect buttons as state changes
- Report connection errors to the operator
"""

import argparse
import sys
from pathlib import Path

from PyQt5.QtWidgets import (QApplication, QMainWindow, QWidget, QVBoxLayout,
                             QHBoxLayout, QLabel, QPushButton, QMessageBox)
from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtGui import QFont

from bigblue.config import apply_cli_overrides, load_config
from bigblue.control.context import ConnectionState
from bigblue.control.remote import RemoteCore
from bigblue.logging_utils import log_event, set_log_level
from bigblue.wireless.comm import Direction


STATUS_STYLE = "QLabel { background-color: #e0e0e0; padding: 10px; border-radius: 5px; }"
STATUS_PULSE_STYLE = "QLabel { background-color: #4CAF50; color: white; padding: 10px; border-radius: 5px; }"

ARROW_KEYS = {
    Qt.Key_Up: Direction.NORTH,
    Qt.Key_Down: Direction.SOUTH,
    Qt.Key_Right: Direction.EAST,
    Qt.Key_Left: Direction.WEST,
}

CONNECT_LABELS = {
    ConnectionState.DISCONNECTED: "Connect to Big Blue",
    ConnectionState.CONNECTING: "Cancel",
    ConnectionState.CONNECTED: "Disconnect",
}


class RoverRemoteGUI(QMainWindow):
    """Main window; all behaviour lives in the ``RemoteCore`` it is given."""

    def __init__(self, config=None):
        super().__init__()
        self.setWindowTitle("Big Blue Hand Controller")
        self.setGeometry(100, 100, 420, 520)

        self.core = RemoteCore(config, haptic_pulse=self.haptic_pulse, parent=self)
        self.core.state_changed.connect(self.update_connection_status)
        self.core.spiral_changed.connect(self.update_spiral_controls)
        self.core.error_occurred.connect(self.handle_error)

        self.init_ui()
        self.update_connection_status(self.core.state)
        self.update_spiral_controls(self.core.spiral_active, self.core.spiral_speed)

    def init_ui(self):
        """Initialize the user interface."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout()
        central_widget.setLayout(main_layout)

        title_label = QLabel("Big Blue")
        title_label.setFont(QFont("Arial", 14, QFont.Bold))
        title_label.setAlignment(Qt.AlignCenter)
        main_layout.addWidget(title_label)

        self.status_label = QLabel("Status: Disconnected")
        self.status_label.setFont(QFont("Arial", 12))
        self.status_label.setAlignment(Qt.AlignCenter)
        self.status_label.setStyleSheet(STATUS_STYLE)
        main_layout.addWidget(self.status_label)

        button_style = """
            QPushButton {
                font-size: 20px;
                font-weight: bold;
                padding: 15px;
                border: 2px solid #333;
                border-radius: 8px;
                background-color: #f0f0f0;
            }
            QPushButton:pressed {
                background-color: #4CAF50;
                color: white;
            }
            QPushButton:disabled {
                color: #aaa;
                border-color: #aaa;
            }
        """

        self.direction_buttons = {
            Direction.NORTH: QPushButton("N"),
            Direction.SOUTH: QPushButton("S"),
            Direction.EAST: QPushButton("E"),
            Direction.WEST: QPushButton("W"),
        }
        for direction, btn in self.direction_buttons.items():
            btn.setStyleSheet(button_style)
            btn.setFixedSize(70, 70)
            btn.setFocusPolicy(Qt.NoFocus)
            btn.pressed.connect(lambda d=direction: self.core.on_direction_press_start(d))
            btn.released.connect(lambda d=direction: self.core.on_direction_press_end(d))

        # Compass layout: N on top, W/E either side, S below
        top_layout = QHBoxLayout()
        top_layout.addStretch()
        top_layout.addWidget(self.direction_buttons[Direction.NORTH])
        top_layout.addStretch()

        middle_layout = QHBoxLayout()
        middle_layout.addStretch()
        middle_layout.addWidget(self.direction_buttons[Direction.WEST])
        middle_layout.addSpacing(70)
        middle_layout.addWidget(self.direction_buttons[Direction.EAST])
        middle_layout.addStretch()

        bottom_layout = QHBoxLayout()
        bottom_layout.addStretch()
        bottom_layout.addWidget(self.direction_buttons[Direction.SOUTH])
        bottom_layout.addStretch()

        main_layout.addLayout(top_layout)
        main_layout.addLayout(middle_layout)
        main_layout.addLayout(bottom_layout)

        spiral_layout = QHBoxLayout()
        self.spiral_btn = QPushButton("Spiral Search")
        self.spiral_btn.setFocusPolicy(Qt.NoFocus)
        self.spiral_btn.clicked.connect(self.core.on_spiral_toggle)
        spiral_layout.addWidget(self.spiral_btn)

        self.speed_btn = QPushButton("Speed: 1x")
        self.speed_btn.setFocusPolicy(Qt.NoFocus)
        self.speed_btn.clicked.connect(self.core.on_speed_cycle)
        spiral_layout.addWidget(self.speed_btn)
        main_layout.addLayout(spiral_layout)

        self.connect_btn = QPushButton(CONNECT_LABELS[ConnectionState.DISCONNECTED])
        self.connect_btn.setFocusPolicy(Qt.NoFocus)
        self.connect_btn.clicked.connect(self.core.on_connect_toggle)
        self.connect_btn.setStyleSheet("QPushButton { background-color: #1565C0; color: white; padding: 8px; }")
        main_layout.addWidget(self.connect_btn)

    def keyPressEvent(self, event):
        """Arrow keys drive like the direction buttons."""
        if event.isAutoRepeat():
            event.accept()
            return
        direction = ARROW_KEYS.get(event.key())
        if direction is not None and self.core.controls_enabled:
            self.direction_buttons[direction].setDown(True)
            self.core.on_direction_press_start(direction)
        elif event.key() == Qt.Key_Escape:
            self.close()
        event.accept()

    def keyReleaseEvent(self, event):
        if event.isAutoRepeat():
            event.accept()
            return
        direction = ARROW_KEYS.get(event.key())
        if direction is not None:
            self.direction_buttons[direction].setDown(False)
            self.core.on_direction_press_end(direction)
        event.accept()

    def haptic_pulse(self, duration_ms, intensity):
        """Desktop stand-in for a vibration: flash the status bar."""
        self.status_label.setStyleSheet(STATUS_PULSE_STYLE)
        QTimer.singleShot(duration_ms, lambda: self.status_label.setStyleSheet(STATUS_STYLE))

    def update_connection_status(self, state):
        """Enable controls only while connected and relabel the connect button."""
        enabled = state is ConnectionState.CONNECTED
        for btn in self.direction_buttons.values():
            btn.setEnabled(enabled)
        self.spiral_btn.setEnabled(enabled)
        self.speed_btn.setEnabled(enabled)
        self.connect_btn.setText(CONNECT_LABELS[state])
        self.status_label.setText(f"Status: {state.value.capitalize()}")

    def update_spiral_controls(self, active, speed):
        self.spiral_btn.setText("Stop Spiral" if active else "Spiral Search")
        self.speed_btn.setText(f"Speed: {speed}x")

    def handle_error(self, error_message):
        """Handle communication errors."""
        log_event("WARNING", "GUI", error_message)
        QMessageBox.warning(self, "Connection", error_message)

    def closeEvent(self, event):
        """Handle application close event."""
        self.core.shutdown()
        event.accept()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Big Blue hand controller")
    parser.add_argument("--config", type=Path, help="JSON config file")
    parser.add_argument("--peer", help="Name of the paired rover radio")
    parser.add_argument("--port", help="Serial port or pyserial URL for the peer (skips port lookup)")
    parser.add_argument("--baud", type=int, help="Serial baud rate")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Console log level")
    return parser.parse_args(argv)


def main():
    """Main function to run the GUI application."""
    args = parse_args()
    config = apply_cli_overrides(load_config(args.config), args)
    set_log_level(config.log_level)

    app = QApplication(sys.argv[:1])
    window = RoverRemoteGUI(config)
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
