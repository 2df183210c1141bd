"""Output panel widget backing the Pulumi LSP output channel."""

from datetime import datetime
from typing import List, Optional

from rich.text import Text
from textual.containers import Vertical
from textual.widgets import RichLog, Static


class OutputPanel(Vertical):
    """Output channel rendered as a scrolling log.

    Lines appended before the widget is mounted are buffered and written
    on mount.
    """

    DEFAULT_CSS = """
    OutputPanel {
        height: 1fr;
        background: #0f172a;
        border-top: solid #3b82f6;
        padding: 0 1;
    }

    OutputPanel #output-title {
        background: #1e293b;
        color: #f1f5f9;
        text-align: center;
        text-style: bold;
    }

    OutputPanel #output-log {
        background: #0f172a;
        color: #f1f5f9;
        border: none;
        scrollbar-background: #1e293b;
        scrollbar-color: #3b82f6;
    }
    """

    def __init__(self, channel_name: str = "Output", **kwargs):
        kwargs.setdefault("name", channel_name)
        super().__init__(**kwargs)
        self.title_text = channel_name
        # Only holds lines written before mount
        self.pending: List[str] = []
        self._rich_log: Optional[RichLog] = None

    def compose(self):
        yield Static(f"[bold]{self.title_text}[/bold]", id="output-title")
        yield RichLog(
            highlight=False,
            markup=False,
            wrap=True,
            auto_scroll=True,
            id="output-log"
        )

    def on_mount(self) -> None:
        self._rich_log = self.query_one("#output-log", RichLog)
        for line in self.pending:
            self._rich_log.write(self._format(line))
        self.pending.clear()

    def _format(self, text: str) -> Text:
        timestamp = datetime.now().strftime("%H:%M:%S")
        line = Text()
        line.append(f"[{timestamp}] ", style="dim")
        line.append(text)
        return line

    def set_title(self, title: str) -> None:
        self.title_text = title
        if self.is_mounted:
            self.query_one("#output-title", Static).update(f"[bold]{title}[/bold]")

    def append_line(self, text: str) -> None:
        if self._rich_log is None:
            self.pending.append(text)
        else:
            self._rich_log.write(self._format(text))

    def clear(self) -> None:
        self.pending.clear()
        if self._rich_log is not None:
            self._rich_log.clear()

    def show(self, preserve_focus: bool = True) -> None:
        self.display = True
        if self._rich_log is None:
            return
        self._rich_log.scroll_end(animate=False)
        if not preserve_focus:
            self._rich_log.focus()
