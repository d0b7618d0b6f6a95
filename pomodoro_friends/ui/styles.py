"""
Stylesheet for the desktop window.
Warm "tomato garden" palette: cream background, tomato red accents.
"""

TOMATO_STYLESHEET = """
/* ── Base ────────────────────────────────────────────────────────── */
QWidget {
    background-color: #fff8f0;
    color: #4a2c1d;
    font-family: "Segoe UI", "Inter", sans-serif;
    font-size: 13px;
}

QMainWindow {
    background-color: #fff8f0;
}

/* ── Buttons ─────────────────────────────────────────────────────── */
QPushButton {
    background-color: #fde2cf;
    color: #5c2b18;
    border: 1px solid #f4b892;
    border-radius: 14px;
    padding: 8px 18px;
    font-weight: 700;
    min-height: 24px;
}

QPushButton:hover {
    background-color: #fbd0b3;
    border-color: #e8573f;
}

QPushButton:disabled {
    background-color: #f5ede6;
    color: #c9b3a4;
    border-color: #eadbd0;
}

QPushButton#primary {
    background-color: #e8573f;
    color: #ffffff;
    border: none;
}

QPushButton#primary:hover {
    background-color: #d9452d;
}

QPushButton#danger {
    background-color: #ffffff;
    color: #d9452d;
    border: 2px solid #e8573f;
}

QPushButton#mode:checked {
    background-color: #5c2b18;
    color: #fff8f0;
    border: none;
}

/* ── Labels ──────────────────────────────────────────────────────── */
QLabel {
    background: transparent;
    color: #4a2c1d;
}

QLabel#title {
    font-size: 20px;
    font-weight: 800;
    color: #e8573f;
}

QLabel#subtitle {
    font-size: 14px;
    color: #8a6a58;
}

QLabel#timer {
    font-size: 64px;
    font-weight: 800;
    font-family: "Consolas", "Courier New", monospace;
    color: #5c2b18;
}

QLabel#timer[rest="true"] {
    color: #3f9b6b;
}

QLabel#state_label {
    font-size: 15px;
    font-weight: 700;
    color: #e8573f;
}

QLabel#feedback {
    font-size: 14px;
    font-weight: 600;
    color: #3f9b6b;
}

QLabel#metric_value {
    font-size: 26px;
    font-weight: 800;
    color: #e8573f;
}

QLabel#metric_label {
    font-size: 11px;
    color: #8a6a58;
}

/* ── Tab Widget ──────────────────────────────────────────────────── */
QTabWidget::pane {
    border: none;
    background-color: #fff8f0;
}

QTabBar::tab {
    background-color: #fde2cf;
    color: #8a6a58;
    padding: 10px 20px;
    margin-right: 2px;
    border-top-left-radius: 12px;
    border-top-right-radius: 12px;
    font-weight: 700;
}

QTabBar::tab:selected {
    background-color: #e8573f;
    color: #ffffff;
}

/* ── Lists ───────────────────────────────────────────────────────── */
QListWidget {
    background-color: #ffffff;
    border: 1px solid #f4d3bd;
    border-radius: 12px;
    padding: 6px;
}

QListWidget::item {
    padding: 6px;
    border-bottom: 1px solid #f8e6da;
}

/* ── SpinBox ─────────────────────────────────────────────────────── */
QSpinBox {
    background-color: #ffffff;
    border: 1px solid #f4b892;
    border-radius: 8px;
    padding: 4px 8px;
}

/* ── Progress Bar ────────────────────────────────────────────────── */
QProgressBar {
    background-color: #fde2cf;
    border-radius: 4px;
    text-align: center;
    color: #5c2b18;
    height: 12px;
}

QProgressBar::chunk {
    background-color: #e8573f;
    border-radius: 4px;
}

/* ── Tooltip ─────────────────────────────────────────────────────── */
QToolTip {
    background-color: #5c2b18;
    color: #fff8f0;
    border: none;
    border-radius: 4px;
    padding: 4px 8px;
}
"""
