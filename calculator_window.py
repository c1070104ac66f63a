"""Calculator window: one display line and a keypad."""

from __future__ import annotations

from typing import Callable

try:
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import QGridLayout, QLabel, QPushButton, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QGridLayout = object  # type: ignore
    QLabel = object  # type: ignore
    QPushButton = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

KEYPAD_ROWS = (
    ("7", "8", "9", "/"),
    ("4", "5", "6", "*"),
    ("1", "2", "3", "-"),
    ("0", ".", "=", "+"),
    ("C", "⌫", "♪"),
)

DISPLAY_STYLE = (
    "color: white; font-size: 28px; padding: 16px;"
    "background: rgba(0,0,0,200); border-radius: 12px;"
)
PENDING_STYLE = (
    "color: #BBBBBB; font-size: 28px; padding: 16px;"
    "background: rgba(0,0,0,200); border-radius: 12px;"
)


class CalculatorWindow(QWidget):
    def __init__(
        self,
        on_key: Callable[[str], object],
        on_evaluate: Callable[[], object],
        on_backspace: Callable[[], object],
        on_clear: Callable[[], object],
        on_replay: Callable[[], object],
    ) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle("Expert Calculator")
        self.setFixedWidth(360)
        self._on_key = on_key
        self._on_evaluate = on_evaluate
        self._on_backspace = on_backspace
        self._on_clear = on_clear
        self._on_replay = on_replay

        self._display = QLabel("0")
        self._display.setWordWrap(True)
        self._display.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        self._display.setStyleSheet(DISPLAY_STYLE)

        grid = QGridLayout()
        for row, labels in enumerate(KEYPAD_ROWS):
            for col, label in enumerate(labels):
                button = QPushButton(label)
                button.setFocusPolicy(Qt.NoFocus)
                button.clicked.connect(lambda _=False, key=label: self._dispatch(key))
                grid.addWidget(button, row, col)

        layout = QVBoxLayout()
        layout.addWidget(self._display)
        layout.addLayout(grid)
        self.setLayout(layout)

    def set_text(self, text: str) -> None:
        self._display.setText(text)

    def set_pending(self, pending: bool) -> None:
        self._display.setStyleSheet(PENDING_STYLE if pending else DISPLAY_STYLE)

    def keyPressEvent(self, event) -> None:  # noqa: ANN001, N802
        key = event.key()
        if key in (Qt.Key_Return, Qt.Key_Enter):
            self._dispatch("=")
        elif key == Qt.Key_Backspace:
            self._dispatch("⌫")
        elif key == Qt.Key_Escape:
            self._dispatch("C")
        elif event.text():
            self._dispatch(event.text())
        else:
            super().keyPressEvent(event)

    def _dispatch(self, key: str) -> None:
        if key == "=":
            self._on_evaluate()
        elif key == "⌫":
            self._on_backspace()
        elif key in ("C", "c"):
            self._on_clear()
        elif key == "♪":
            self._on_replay()
        else:
            self._on_key(key)
