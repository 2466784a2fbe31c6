"""
Defines custom Message classes for the application.
"""
from textual.message import Message

from vmgr.dispatcher import CommandResult
from vmgr.metrics import MetricsSnapshot


class StatsCollected(Message):
    """Posted by the fetch worker with one fresh snapshot per VM."""

    def __init__(self, batch: list[MetricsSnapshot]) -> None:
        super().__init__()
        self.batch = batch


class StatsFailed(Message):
    """Posted when a stats fetch failed and the tick is skipped."""

    def __init__(self, error: str) -> None:
        super().__init__()
        self.error = error


class CommandCompleted(Message):
    """Posted when libvirt accepted a start, stop or snapshot command."""

    def __init__(self, result: CommandResult) -> None:
        super().__init__()
        self.result = result


class CommandFailed(Message):
    """Posted when libvirt rejected a lifecycle command."""

    def __init__(self, action: str, vm_name: str, error: str) -> None:
        super().__init__()
        self.action = action
        self.vm_name = vm_name
        self.error = error


class ConnectionDropped(Message):
    """Posted when the host connection is gone; the app exits on it."""

    def __init__(self, uri: str, error: str) -> None:
        super().__init__()
        self.uri = uri
        self.error = error
