"""TUI Dashboard for ssmwait."""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Footer, Header, Label, RichLog, Static
from textual.worker import Worker

from .config import Config
from .runner import RunResult, run
from .tracker import TargetStatus

STATUS_ICONS = {
    TargetStatus.PENDING: ("○", "dim"),
    TargetStatus.IN_PROGRESS: ("◐", "yellow"),
    TargetStatus.SUCCESS: ("●", "green"),
    TargetStatus.OTHER_TERMINAL: ("✖", "red"),
    TargetStatus.RETRIES_EXHAUSTED: ("⧗", "red"),
    TargetStatus.QUERY_ERROR: ("!", "red"),
}


class TargetPanel(Static):
    """A panel displaying the poll log of a single target."""

    status: reactive[TargetStatus] = reactive(TargetStatus.PENDING)

    def __init__(self, target: str, document_name: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.target = target
        self.document_name = document_name

    def compose(self) -> ComposeResult:
        yield Label(self._get_header(), id=f"header-{self.id}")
        yield RichLog(
            id=f"log-{self.id}",
            highlight=True,
            markup=True,
            wrap=True,
            auto_scroll=True,
        )

    def _get_header(self) -> str:
        icon, color = STATUS_ICONS.get(self.status, ("?", "white"))
        return (
            f"[{color}]{icon}[/] [{color}][bold]{self.target}[/bold][/] "
            f"[{color}]{self.document_name} ({self.status.value})[/]"
        )

    def watch_status(self, status: TargetStatus) -> None:
        """Update header when status changes."""
        if not self.is_mounted:
            return
        header = self.query_one(f"#header-{self.id}", Label)
        header.update(self._get_header())

    def append_output(self, line: str) -> None:
        """Append a line of output to this panel."""
        log = self.query_one(f"#log-{self.id}", RichLog)
        if line.startswith("ERROR:"):
            log.write(f"[bold red]{line}[/bold red]")
        elif line.startswith("InstanceId:"):
            log.write(f"[green]{line}[/green]")
        else:
            log.write(line)


class StatusBar(Static):
    """Bottom status bar showing overall progress."""

    completed: reactive[int] = reactive(0)
    total: reactive[int] = reactive(0)
    message: reactive[str] = reactive("Running...")

    def render(self) -> str:
        return (
            f"Progress: {self.completed}/{self.total} targets resolved | "
            f"{self.message} | Press 'q' to quit"
        )


class TargetOutput(Message):
    """Message for target output."""

    def __init__(self, target: str, line: str) -> None:
        super().__init__()
        self.target = target
        self.line = line


class TargetStatusChange(Message):
    """Message for target status change."""

    def __init__(self, target: str, status: TargetStatus) -> None:
        super().__init__()
        self.target = target
        self.status = status


class Dashboard(App):
    """Main TUI Dashboard application."""

    CSS = """
    Screen {
        layout: grid;
        grid-size: 2;
        grid-gutter: 1;
    }

    TargetPanel {
        border: solid $primary;
        height: 100%;
        min-height: 10;
    }

    TargetPanel Label {
        dock: top;
        padding: 0 1;
        background: $surface;
    }

    TargetPanel RichLog {
        height: 1fr;
        padding: 0 1;
    }

    StatusBar {
        dock: bottom;
        height: 1;
        background: $surface;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("escape", "quit", "Quit"),
    ]

    def __init__(self, config: Config, enable_logging: bool = True, **kwargs) -> None:
        super().__init__(**kwargs)
        self.config = config
        self.enable_logging = enable_logging
        self.panels: dict[str, TargetPanel] = {}
        self.result: RunResult | None = None
        self._worker: Worker | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        # Create panels for each target
        for i, target in enumerate(self.config.target_ids):
            panel = TargetPanel(target, self.config.document_name, id=f"panel-{i}")
            self.panels[target] = panel
            yield panel

        yield StatusBar(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Start dispatching when the app mounts."""
        status_bar = self.query_one("#status-bar", StatusBar)
        status_bar.total = len(self.config.target_ids)

        # Start the run using Textual's worker system
        self._worker = self.run_worker(self._run_dispatch(), exclusive=True)

    async def _run_dispatch(self) -> None:
        """Run dispatch and tracking, then show the outcome."""
        self.result = await run(
            self.config,
            on_output=self._on_output,
            on_status=self._on_status,
            enable_logging=self.enable_logging,
        )
        status_bar = self.query_one("#status-bar", StatusBar)
        if self.result.success:
            status_bar.message = "Complete"
        else:
            status_bar.message = f"Failed: {self.result.message}"

    def _on_output(self, target: str, line: str) -> None:
        """Handle output from a target."""
        self.post_message(TargetOutput(target, line))

    def _on_status(self, target: str, status: TargetStatus) -> None:
        """Handle status change for a target."""
        self.post_message(TargetStatusChange(target, status))

    def on_target_output(self, message: TargetOutput) -> None:
        """Handle TargetOutput message."""
        if message.target in self.panels:
            self.panels[message.target].append_output(message.line)

    def on_target_status_change(self, message: TargetStatusChange) -> None:
        """Handle TargetStatusChange message."""
        if message.target in self.panels:
            self.panels[message.target].status = message.status

        # Update resolved count
        if message.status.is_terminal:
            status_bar = self.query_one("#status-bar", StatusBar)
            status_bar.completed += 1

    async def action_quit(self) -> None:
        """Quit the application."""
        if self._worker and self._worker.is_running:
            self._worker.cancel()
        self.exit()
