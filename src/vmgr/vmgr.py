"""
Main interface
"""
import sys
import logging
import argparse
from typing import Any, Callable

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import DataTable, Footer, Header, Static
from textual.worker import Worker, WorkerState

from vmgr.config import load_config, get_log_path, save_config
from vmgr.connection_manager import ConnectionManager
from vmgr.constants import (
        AppInfo, ErrorMessages, INFO_TEXT, ITEM_HEIGHT, TableColumns, VmAction
        )
from vmgr.dispatcher import CommandDispatcher
from vmgr.errors import CommandFailure, ConnectionLost, FetchFailure, NoSelection
from vmgr.events import (
        CommandCompleted, CommandFailed, ConnectionDropped, StatsCollected, StatsFailed
        )
from vmgr.libvirt_error_handler import register_error_handler
from vmgr.monitor import VmMonitor
from vmgr.rates import DerivedRow
from vmgr.stats_source import RawCounterSource
from vmgr.utils import extract_server_name_from_uri


class WorkerManager:
    """A class to manage and track Textual workers."""

    def __init__(self, app: App):
        self.app = app
        self.workers: dict[str, Worker] = {}

    def run(
        self,
        callable: Callable[..., Any],
        *,
        name: str,
        group: str = "default",
        description: str = "",
    ) -> Worker | None:
        """
        Runs a thread worker, skipping the run if one with the same name is
        still in flight.
        """
        if self.is_running(name):
            logging.debug(f"Worker '{name}' is already running. Skipping new run.")
            return None

        worker = self.app.run_worker(
            callable,
            name=name,
            thread=True,
            group=group,
            exclusive=False,
            description=description,
            exit_on_error=False,
        )

        self.workers[name] = worker
        return worker

    def is_running(self, name: str) -> bool:
        """Check if a worker with the given name is currently running."""
        return name in self.workers and self.workers[name].state not in (
            WorkerState.SUCCESS,
            WorkerState.CANCELLED,
            WorkerState.ERROR,
        )

    def cancel_all(self) -> None:
        """Cancel all running workers."""
        logging.info("Cancelling all running workers.")
        for worker in list(self.workers.values()):
            worker.cancel()
        self.workers.clear()


def format_overview(row: DerivedRow | None) -> str:
    """Text of the statistics panel for the selected VM."""
    if row is None:
        return "No VM found on this host."
    return "\n".join([
        f"Name: {row.name}",
        f"Status: {row.status_label}",
        f"CPU Usage: {row.cpu_usage_display}",
        f"Mem Usage: {row.mem_total_display}",
        f"Network: {row.net_interface_name}",
        f"MB upload: {row.net_rx_display:.2f}",
        f"MB download: {row.net_tx_display:.2f}",
        f"Disk: {row.disk_name}",
        f"path: {row.disk_path}",
        f"MB read: {row.disk_read_display:.2f}",
        f"MB written: {row.disk_write_display:.2f}",
    ])


class VmgrApp(App):
    """A Textual dashboard showing live VM statistics."""

    BINDINGS = [
        ("q", "quit", "Quit"),
        Binding("escape", "quit", "Quit", show=False),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
        Binding("up", "move_previous", "Up", priority=True),
        Binding("down", "move_next", "Down", priority=True),
        ("x", "toggle_vm", "Start/Stop"),
        ("s", "snapshot_vm", "Snapshot"),
    ]

    CSS = """
    #overview-row {
        height: 40%;
        align-horizontal: center;
    }
    #overview {
        width: 70%;
        height: 100%;
        border: heavy $accent;
        padding: 0 1;
    }
    #vm-table {
        height: 1fr;
    }
    #info-footer {
        height: 3;
        border: double $accent;
        content-align: center middle;
    }
    """

    def __init__(self, config: dict | None = None):
        super().__init__()
        self.config = config or load_config()
        self.uri = self.config['URI']
        self.connection_manager = ConnectionManager(self.uri, timeout=self.config['CONNECT_TIMEOUT'])
        self.monitor = VmMonitor(
            RawCounterSource(self.connection_manager, timeout=self.config['FETCH_TIMEOUT'])
        )
        self.dispatcher = CommandDispatcher(self.connection_manager, stop_mode=self.config['STOP_MODE'])
        self.worker_manager = WorkerManager(self)
        self.ui = {}

    def compose(self) -> ComposeResult:
        """Create child widgets for the app."""
        yield Header()
        with Vertical():
            with Horizontal(id="overview-row"):
                yield Static(id="overview")
            table = DataTable(id="vm-table", cursor_type="row", zebra_stripes=True)
            table.can_focus = False
            yield table
            yield Static(INFO_TEXT, id="info-footer")
        yield Footer()

    def on_mount(self) -> None:
        """Called when the app is mounted."""
        self.title = f"{AppInfo.namecase} v{AppInfo.version}"
        self.sub_title = f"Server: {extract_server_name_from_uri(self.uri)}"

        table = self.query_one("#vm-table", DataTable)
        table.add_columns(
            TableColumns.ID, TableColumns.NAME, TableColumns.CPU,
            TableColumns.MEMORY, TableColumns.STATUS,
        )
        self.ui = {
            "table": table,
            "overview": self.query_one("#overview", Static),
        }
        self.ui["overview"].border_title = "VM statistics"

        if self.connection_manager.connect() is None:
            message = ErrorMessages.CONNECT_FAILED.format(
                uri=self.uri, error=self.connection_manager.connection_error
            )
            logging.error(message)
            self.exit(return_code=1, message=message)
            return

        self.refresh_stats()
        self.set_interval(self.config['TICK_INTERVAL'], self.refresh_stats)

    def on_unmount(self) -> None:
        """Called when the app is about to close."""
        self.worker_manager.cancel_all()
        self.connection_manager.disconnect()

    def show_error_message(self, message: str):
        logging.error(message)
        self.notify(message, severity="error", timeout=10, title="Error!")

    def show_warning_message(self, message: str):
        logging.warning(message)
        self.notify(message, severity="warning", timeout=5)

    def show_success_message(self, message: str):
        logging.info(message)
        self.notify(message, timeout=10, title="Info")

    def refresh_stats(self) -> None:
        """Starts a stats fetch unless the previous one is still running."""
        self.worker_manager.run(self.fetch_stats_worker, name="fetch_stats", group="stats")

    def fetch_stats_worker(self) -> None:
        """Worker doing the libvirt round-trip; results go back as messages."""
        try:
            batch = self.monitor.collect()
        except ConnectionLost as e:
            self.post_message(ConnectionDropped(e.uri, str(e)))
            return
        except FetchFailure as e:
            self.post_message(StatsFailed(str(e)))
            return
        except Exception as e:
            logging.error(ErrorMessages.UNEXPECTED_FETCH_ERROR.format(error=e), exc_info=True)
            self.post_message(StatsFailed(str(e)))
            return
        self.post_message(StatsCollected(batch))

    def on_stats_collected(self, message: StatsCollected) -> None:
        self.monitor.apply(message.batch)
        self.update_table()

    def on_stats_failed(self, message: StatsFailed) -> None:
        # previous rows stay on screen
        self.show_error_message(ErrorMessages.FETCH_FAILED.format(error=message.error))

    def on_connection_dropped(self, message: ConnectionDropped) -> None:
        text = ErrorMessages.CONNECTION_LOST.format(uri=message.uri)
        logging.critical(f"{text} ({message.error})")
        self.exit(return_code=1, message=text)

    def update_table(self) -> None:
        """Redraws the table and overview from the monitor's rows and selection."""
        table = self.ui.get("table")
        if table is None:
            return

        table.clear()
        for row in self.monitor.rows:
            cells = [str(row.identity.id), row.name, row.cpu_usage_display,
                     row.mem_total_display, row.status_label]
            table.add_row(*(f"\n{cell}\n" for cell in cells), height=ITEM_HEIGHT, key=row.name)
        self.update_selection()

    def update_selection(self) -> None:
        table = self.ui.get("table")
        if table is None:
            return
        state = self.monitor.state
        if state.selected_index is not None:
            table.move_cursor(row=state.selected_index)
        table.scroll_to(y=state.scroll_offset, animate=False)
        self.ui["overview"].update(format_overview(self.monitor.selected_row()))

    def action_move_next(self) -> None:
        self.monitor.selection.move_next()
        self.update_selection()

    def action_move_previous(self) -> None:
        self.monitor.selection.move_previous()
        self.update_selection()

    def action_toggle_vm(self) -> None:
        """Starts the selected VM if it is off, stops it otherwise."""
        self.run_command(VmAction.TOGGLE)

    def action_snapshot_vm(self) -> None:
        self.run_command(VmAction.SNAPSHOT)

    def run_command(self, action: str) -> None:
        """Resolves the selected VM now and sends the command from a worker."""
        try:
            concrete_action, vm_name = self.dispatcher.resolve(
                action, self.monitor.state, self.monitor.rows
            )
        except NoSelection:
            self.show_warning_message(ErrorMessages.NO_SELECTION)
            return

        def command_worker():
            try:
                result = self.dispatcher.execute(concrete_action, vm_name)
            except ConnectionLost as e:
                self.post_message(ConnectionDropped(e.uri, str(e)))
                return
            except CommandFailure as e:
                self.post_message(CommandFailed(e.action, e.vm_name, e.reason))
                return
            self.post_message(CommandCompleted(result))

        worker = self.worker_manager.run(
            command_worker, name=f"action_{concrete_action}_{vm_name}", group="commands"
        )
        if worker is None:
            self.show_warning_message(ErrorMessages.COMMAND_IN_PROGRESS.format(
                action=concrete_action, name=vm_name
            ))

    def on_command_completed(self, message: CommandCompleted) -> None:
        self.show_success_message(message.result.message)

    def on_command_failed(self, message: CommandFailed) -> None:
        self.show_error_message(ErrorMessages.COMMAND_FAILED.format(
            name=message.vm_name, action=message.action, error=message.error
        ))


def positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"{value} is not a positive number")
    return number


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="A terminal dashboard for libvirt virtual machines.")
    parser.add_argument("--uri", help="libvirt URI to monitor (default from config: qemu:///system).")
    parser.add_argument("--interval", type=positive_float, help="Seconds between two statistics refreshes.")
    parser.add_argument("--save-config", action="store_true",
                        help="Write --uri and --interval to the user config file.")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level.")
    parser.add_argument("--version", action="version", version=f"{AppInfo.name} {AppInfo.version}")
    return parser.parse_args(argv)


def build_config(args) -> dict:
    """Loads the config file and applies the command line overrides."""
    config = load_config()
    if args.uri:
        config['URI'] = args.uri
    if args.interval is not None:
        config['TICK_INTERVAL'] = args.interval
    if args.save_config:
        save_config(config)
    return config


def main():
    """Entry point for the vmgr dashboard."""
    args = parse_arguments()
    config = build_config(args)

    logging.basicConfig(
        filename=get_log_path(config),
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    register_error_handler()

    app = VmgrApp(config)
    app.run()
    app.connection_manager.disconnect()
    sys.exit(app.return_code or 0)

if __name__ == "__main__":
    main()
