"""
Main Window — the desktop shell of Pomodoro Friends.

Contains:
  - Timer tab (mode switch, batch size, start/pause, cancel, live clock)
  - Achievements tab (every badge with its progress)
  - Stats tab (today, this week, this month, focus hours, lifetime)

Presentation only: every decision is made by TimerService, this class just
renders TimerSnapshot / Feedback and forwards button clicks.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QBrush, QCloseEvent, QColor
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QTabWidget, QListWidget, QListWidgetItem, QSpinBox, QFileDialog,
    QMessageBox, QButtonGroup, QGridLayout,
)

from pomodoro_friends.config import TimerSettings, load_settings
from pomodoro_friends.data.database import Database
from pomodoro_friends.data.repository import Repository
from pomodoro_friends.services.achievements import AchievementEngine
from pomodoro_friends.services.catalog import AchievementDefinition
from pomodoro_friends.services.clock import format_clock, format_duration
from pomodoro_friends.services.ledger import SessionLedger
from pomodoro_friends.services.tick_scheduler import TickScheduler
from pomodoro_friends.services.timer_service import (
    Feedback,
    FeedbackKind,
    TimerMode,
    TimerService,
    TimerSnapshot,
    TimerStatus,
)
from pomodoro_friends.stats import report

logger = logging.getLogger(__name__)

STATUS_TEXT = {
    TimerStatus.IDLE: "Ready to grow a tomato",
    TimerStatus.RUNNING: "Focusing",
    TimerStatus.PAUSED: "Paused",
    TimerStatus.RESTING: "Resting",
    TimerStatus.STREAK_PROTECTION: "Start again now to keep your streak!",
}


class MainWindow(QMainWindow):
    """The main application window."""

    def __init__(self, db_path: Optional[Path] = None, settings: Optional[TimerSettings] = None) -> None:
        super().__init__()
        self.setWindowTitle("Pomodoro Friends")
        self.setMinimumSize(480, 640)

        # ── Initialize core systems ─────────────────────────────────────
        self.settings = settings or load_settings()
        self.db = Database(db_path)
        self.db.connect()
        self.repo = Repository(self.db.conn)
        self.ledger = SessionLedger(self.repo)
        self.engine = AchievementEngine(self.repo)
        self.timer_svc = TimerService(self.ledger, self.engine, settings=self.settings)
        self.scheduler = TickScheduler(self.timer_svc, self.settings.tick_interval_ms)

        # ── Build UI ────────────────────────────────────────────────────
        self._build_ui()
        self._build_dev_menu()

        # ── Connect signals ─────────────────────────────────────────────
        self.timer_svc.on_state_changed = self._render_snapshot
        self.timer_svc.on_feedback = self._on_feedback
        self.timer_svc.on_achievements_unlocked = self._on_achievements_unlocked

        self._render_snapshot(self.timer_svc.snapshot())
        self._refresh_achievements()
        self._refresh_stats()
        if self.timer_svc.last_feedback is not None:
            # e.g. history failed to load
            self._on_feedback(self.timer_svc.last_feedback)

    # ── UI Construction ─────────────────────────────────────────────────

    def _build_ui(self) -> None:
        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        self.tabs.addTab(self._build_timer_tab(), "Timer")
        self.tabs.addTab(self._build_achievements_tab(), "Achievements")
        self.tabs.addTab(self._build_stats_tab(), "Stats")

        self.tabs.currentChanged.connect(self._on_tab_changed)

    def _build_timer_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setSpacing(14)
        layout.setContentsMargins(24, 24, 24, 24)

        # ── Mode switch ─────────────────────────────────────────────
        mode_layout = QHBoxLayout()
        self.mode_group = QButtonGroup(self)
        self.btn_countdown = QPushButton("Countdown")
        self.btn_flow = QPushButton("Flow")
        for btn, mode in ((self.btn_countdown, TimerMode.COUNTDOWN), (self.btn_flow, TimerMode.FLOW)):
            btn.setObjectName("mode")
            btn.setCheckable(True)
            btn.clicked.connect(lambda _checked=False, m=mode: self.timer_svc.switch_mode(m))
            self.mode_group.addButton(btn)
            mode_layout.addWidget(btn)
        self.btn_countdown.setChecked(True)
        layout.addLayout(mode_layout)

        # ── State + clock ───────────────────────────────────────────
        self.state_label = QLabel("")
        self.state_label.setObjectName("state_label")
        self.state_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.state_label)

        self.timer_label = QLabel("25:00")
        self.timer_label.setObjectName("timer")
        self.timer_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.timer_label)

        self.unit_label = QLabel("")
        self.unit_label.setObjectName("subtitle")
        self.unit_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.unit_label)

        # ── Batch size ──────────────────────────────────────────────
        batch_layout = QHBoxLayout()
        batch_layout.addStretch()
        batch_layout.addWidget(QLabel("Tomatoes in a row:"))
        self.batch_spin = QSpinBox()
        self.batch_spin.setRange(self.settings.min_batch_size, self.settings.max_batch_size)
        self.batch_spin.setValue(self.timer_svc.batch_size)
        self.batch_spin.valueChanged.connect(self.timer_svc.set_batch_size)
        batch_layout.addWidget(self.batch_spin)
        batch_layout.addStretch()
        layout.addLayout(batch_layout)

        # ── Primary buttons ─────────────────────────────────────────
        btn_layout = QHBoxLayout()
        btn_layout.setSpacing(12)

        self.btn_start = QPushButton("Start")
        self.btn_start.setObjectName("primary")
        self.btn_start.setMinimumHeight(48)
        self.btn_start.clicked.connect(self._on_start_pause)
        btn_layout.addWidget(self.btn_start)

        self.btn_cancel = QPushButton("Give Up")
        self.btn_cancel.setObjectName("danger")
        self.btn_cancel.setMinimumHeight(48)
        self.btn_cancel.clicked.connect(self.timer_svc.cancel)
        btn_layout.addWidget(self.btn_cancel)

        layout.addLayout(btn_layout)

        # ── Feedback / quota ────────────────────────────────────────
        self.feedback_label = QLabel("")
        self.feedback_label.setObjectName("feedback")
        self.feedback_label.setWordWrap(True)
        self.feedback_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.feedback_label)

        self.quota_label = QLabel("")
        self.quota_label.setObjectName("metric_label")
        self.quota_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.quota_label)

        layout.addStretch()
        return widget

    def _build_achievements_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(24, 24, 24, 24)

        self.achievements_title = QLabel("Achievements")
        self.achievements_title.setObjectName("title")
        layout.addWidget(self.achievements_title)

        self.achievement_list = QListWidget()
        layout.addWidget(self.achievement_list)
        return widget

    def _build_stats_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)
        layout.setContentsMargins(24, 24, 24, 24)

        title = QLabel("Your Garden")
        title.setObjectName("title")
        layout.addWidget(title)

        grid = QGridLayout()
        self.metric_labels = {}
        metrics = [
            ("today_tomatoes", "Tomatoes today"),
            ("today_focus", "Focus time"),
            ("today_interruptions", "Interruptions"),
            ("today_streak", "Session streak"),
            ("week_total", "This week"),
            ("week_avg", "Daily average"),
            ("lifetime_total", "All-time tomatoes"),
            ("day_streak", "Day streak"),
        ]
        for i, (key, caption) in enumerate(metrics):
            value = QLabel("0")
            value.setObjectName("metric_value")
            value.setAlignment(Qt.AlignmentFlag.AlignCenter)
            label = QLabel(caption)
            label.setObjectName("metric_label")
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            row, col = divmod(i, 2)
            grid.addWidget(value, row * 2, col)
            grid.addWidget(label, row * 2 + 1, col)
            self.metric_labels[key] = value
        layout.addLayout(grid)

        self.golden_hour_label = QLabel("")
        self.golden_hour_label.setObjectName("subtitle")
        self.golden_hour_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.golden_hour_label)

        self.month_label = QLabel("")
        self.month_label.setObjectName("subtitle")
        self.month_label.setWordWrap(True)
        self.month_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.month_label)

        layout.addStretch()
        return widget

    def _build_dev_menu(self) -> None:
        menu = self.menuBar().addMenu("Dev")
        menu.addAction("Skip to last 5 seconds").triggered.connect(
            lambda: self.timer_svc.debug_set_remaining(5)
        )
        menu.addAction("Add 10 minutes of flow").triggered.connect(
            lambda: self.timer_svc.debug_add_flow_seconds(600)
        )
        menu.addSeparator()
        menu.addAction("Export history (CSV)...").triggered.connect(self._export_csv)

    # ── Timer callbacks ─────────────────────────────────────────────────

    def _render_snapshot(self, snap: TimerSnapshot) -> None:
        self.timer_label.setText(format_clock(snap.seconds))
        self.timer_label.setProperty("rest", snap.is_rest_phase)
        self.timer_label.style().unpolish(self.timer_label)
        self.timer_label.style().polish(self.timer_label)

        self.state_label.setText(STATUS_TEXT[snap.status])
        if snap.mode is TimerMode.COUNTDOWN and snap.status in (TimerStatus.RUNNING, TimerStatus.PAUSED):
            self.unit_label.setText(f"Tomato {snap.current_unit_index} of {snap.total_units}")
        elif snap.is_rest_phase:
            self.unit_label.setText(f"Rest {self.timer_svc.rest_minutes} min")
        else:
            self.unit_label.setText("")

        configurable = snap.status in (TimerStatus.IDLE, TimerStatus.STREAK_PROTECTION)
        self.btn_countdown.setEnabled(configurable)
        self.btn_flow.setEnabled(configurable)
        self.btn_countdown.setChecked(snap.mode is TimerMode.COUNTDOWN)
        self.btn_flow.setChecked(snap.mode is TimerMode.FLOW)
        self.batch_spin.setEnabled(configurable and snap.mode is TimerMode.COUNTDOWN)

        self._update_button_states(snap)
        self.scheduler.sync()

    @Slot()
    def _on_start_pause(self) -> None:
        if self.timer_svc.status is TimerStatus.RUNNING:
            self.timer_svc.pause()
        else:
            self.timer_svc.start()
        self.scheduler.sync()

    def _on_feedback(self, feedback: Feedback) -> None:
        text = {
            FeedbackKind.REWARD: f"+{feedback.credited} tomato(es)! Enjoy {feedback.rest_minutes} min of rest.",
            FeedbackKind.BROKEN: "Session interrupted.",
            FeedbackKind.ENCOURAGE: "Almost there, two minutes left!",
            FeedbackKind.STREAK_LOST: "Streak lost. Start a new one!",
            FeedbackKind.QUOTA_EXCEEDED: "That's plenty for today. Come back tomorrow!",
            FeedbackKind.STORAGE_ERROR: "Couldn't save to disk; your progress is kept for this session.",
        }[feedback.kind]
        self.feedback_label.setText(text)
        if feedback.kind in (FeedbackKind.REWARD, FeedbackKind.BROKEN):
            self._refresh_stats()

    def _on_achievements_unlocked(self, definitions: List[AchievementDefinition]) -> None:
        names = ", ".join(d.id for d in definitions)
        self.statusBar().showMessage(f"Unlocked: {names}", 8000)
        self._refresh_achievements()

    # ── Refresh ─────────────────────────────────────────────────────────

    def _refresh_achievements(self) -> None:
        history = self.ledger.all()
        self.achievement_list.clear()
        unlocked = 0
        for definition in self.engine.definitions:
            progress = self.engine.progress(definition.id, history)
            done = self.engine.is_unlocked(definition.id)
            unlocked += done
            mark = "✓" if done else f"{progress.current}/{progress.total}"
            item = QListWidgetItem(f"{definition.id}   [{definition.category.value.lower()}]   {mark}")
            item.setToolTip(f"{int(progress.ratio * 100)}%")
            if not done:
                item.setForeground(QBrush(QColor("#b8a89c")))
            self.achievement_list.addItem(item)
        self.achievements_title.setText(f"Achievements ({unlocked}/{len(self.engine.definitions)})")

    def _refresh_stats(self) -> None:
        history = self.ledger.all()
        today = self.timer_svc.today()

        day = report.today_summary(history, today)
        week = report.week_summary(history, today)
        life = report.lifetime_summary(history, today)
        hours = report.focus_distribution(history)
        month = report.month_summary(history, today, today)

        m = self.metric_labels
        m["today_tomatoes"].setText(str(day.tomatoes))
        m["today_focus"].setText(format_duration(day.focus_minutes))
        m["today_interruptions"].setText(str(day.interruptions))
        m["today_streak"].setText(str(day.session_streak))
        m["week_total"].setText(str(week.total))
        m["week_avg"].setText(f"{week.average:.1f}")
        m["lifetime_total"].setText(str(life.total_tomatoes))
        m["day_streak"].setText(str(life.day_streak))

        if hours.best_hour is None:
            self.golden_hour_label.setText("Finish a tomato to find your golden hour.")
        else:
            self.golden_hour_label.setText(
                f"Golden hour: {hours.best_hour:02d}:00 - {hours.best_hour + 1:02d}:00 ({hours.period})"
            )

        month_text = f"This month: {month.total} tomatoes, {month.average:.1f} a day"
        if month.best_day is not None:
            month_text += f", best day {month.best_day:%b %d} ({month.best_day_count})"
        self.month_label.setText(month_text + f", longest run {month.longest_day_run} days")

        self.quota_label.setText(
            f"{self.timer_svc.today_completed()} / {self.settings.daily_quota} tomatoes today"
        )

    # ── Button state management ─────────────────────────────────────────

    def _update_button_states(self, snap: TimerSnapshot) -> None:
        status = snap.status
        running = status is TimerStatus.RUNNING

        self.btn_start.setText({
            TimerStatus.IDLE: "Start",
            TimerStatus.RUNNING: "Pause",
            TimerStatus.PAUSED: "Resume",
            TimerStatus.RESTING: "Start",
            TimerStatus.STREAK_PROTECTION: "Keep Going",
        }[status])
        self.btn_start.setEnabled(
            status in (TimerStatus.IDLE, TimerStatus.PAUSED, TimerStatus.STREAK_PROTECTION)
            or (running and snap.mode is TimerMode.COUNTDOWN)
        )

        self.btn_cancel.setText("Skip Rest" if status is TimerStatus.RESTING else "Give Up")
        self.btn_cancel.setEnabled(status is not TimerStatus.IDLE)

    # ── Misc ────────────────────────────────────────────────────────────

    @Slot(int)
    def _on_tab_changed(self, index: int) -> None:
        if index == 1:
            self._refresh_achievements()
        elif index == 2:
            self._refresh_stats()

    def _export_csv(self) -> None:
        path, _ = QFileDialog.getSaveFileName(self, "Export history", "history.csv", "CSV (*.csv)")
        if not path:
            return
        try:
            Path(path).write_text(self.repo.export_history_csv(), encoding="utf-8")
        except OSError as e:
            logger.error("Export failed: %s", e)
            QMessageBox.warning(self, "Export failed", str(e))

    def closeEvent(self, event: QCloseEvent) -> None:
        if self.timer_svc.status is TimerStatus.RUNNING:
            reply = QMessageBox.question(
                self, "Tomato growing",
                "A session is running. Quit anyway?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            )
            if reply != QMessageBox.StandardButton.Yes:
                event.ignore()
                return
        self.scheduler.stop()
        self.db.close()
        event.accept()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Builds the whole object graph (Database → Repository → SessionLedger →
#   AchievementEngine → TimerService → TickScheduler) and renders its output.
#
# Data flow:
#   Button click → TimerService command → on_state_changed(snapshot)
#   → _render_snapshot() → labels/buttons updated → scheduler.sync().
#   Feedback and unlocks arrive through their own callbacks.
#
# Interviewer-friendly talking points:
#   1. The window holds no timer state of its own. Close it mid-session and
#      the only thing lost is the live countdown; the history is on disk.
#   2. Achievement titles are shown by id: localized copy is a separate layer.
