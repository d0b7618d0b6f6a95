"""
Pomodoro Friends — tomato timer with streaks and achievements.
Entry point for the application.
"""

import faulthandler
import logging
import sys
from pathlib import Path

faulthandler.enable()

# Ensure the package is importable when run from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent))

from PySide6.QtWidgets import QApplication

from pomodoro_friends.ui.main_window import MainWindow
from pomodoro_friends.ui.styles import TOMATO_STYLESHEET


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("pomodoro_friends.log", encoding="utf-8"),
        ],
    )


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting Pomodoro Friends...")

    app = QApplication(sys.argv)
    app.setApplicationName("Pomodoro Friends")
    app.setOrganizationName("PomodoroFriends")
    app.setStyleSheet(TOMATO_STYLESHEET)

    window = MainWindow()
    window.show()

    logger.info("Application started.")
    sys.exit(app.exec())


if __name__ == "__main__":
    main()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Sets up logging, creates the Qt application, applies the stylesheet and
#   opens MainWindow. Everything else is built by the window.
#
# Key points:
#   - QApplication must exist before the TickScheduler is created, because
#     the scheduler subscribes to applicationStateChanged on the instance.
#   - app.exec() runs the event loop; every tick is a QTimer event in it.
#
# Interviewer-friendly talking points:
#   1. Logging to console and file: console while developing, the file for
#      "my tomato didn't count" reports.
