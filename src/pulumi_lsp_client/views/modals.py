#!/usr/bin/env python3
"""Modal dialogs for editor messages with selectable actions."""

from typing import Optional, Sequence

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label


SEVERITY_TITLES = {
    "information": "Information",
    "warning": "Warning",
    "error": "Error",
}


class MessageModal(ModalScreen[Optional[str]]):
    """Shows a message with action buttons.

    Dismisses with the chosen action, or ``None`` when closed without a
    choice.
    """

    DEFAULT_CSS = """
    MessageModal {
        align: center middle;
    }

    MessageModal #message-dialog {
        width: 70;
        height: auto;
        padding: 1 2;
        background: #1e293b;
        border: thick #3b82f6;
    }

    MessageModal.warning #message-dialog {
        border: thick #f59e0b;
    }

    MessageModal.error #message-dialog {
        border: thick #ef4444;
    }

    MessageModal #message-title {
        text-style: bold;
        margin-bottom: 1;
    }

    MessageModal #message-actions {
        height: auto;
        margin-top: 1;
    }

    MessageModal Button {
        margin-right: 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
    ]

    def __init__(self, message: str, actions: Sequence[str] = (),
                 severity: str = "information", **kwargs):
        super().__init__(**kwargs)
        self.message = message
        self.actions = list(actions)
        self.severity = severity

    def compose(self) -> ComposeResult:
        with Vertical(id="message-dialog"):
            yield Label(SEVERITY_TITLES.get(self.severity, "Message"), id="message-title")
            yield Label(self.message, id="message-text")
            with Horizontal(id="message-actions"):
                for index, action in enumerate(self.actions):
                    yield Button(action, id=f"action-{index}",
                                 variant="primary" if index == 0 else "default")
                yield Button("Close", id="action-close")

    def on_mount(self) -> None:
        self.add_class(self.severity)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id.startswith("action-") and button_id != "action-close":
            self.dismiss(self.actions[int(button_id[len("action-"):])])
        else:
            self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)
