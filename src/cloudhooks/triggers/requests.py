"""Request objects handed to hook functions.

The platform layer raising an event (storage engine, file adapter, realtime
server, session layer) builds one of these with the caller's identity and
passes it to the dispatcher. The dispatcher never fills identity itself.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass
class TriggerRequest:
    """Request passed to object, login and subscribe triggers.

    Attributes:
        trigger_name: Wire name of the trigger (set by the dispatcher if empty)
        object: The object triggering the hook
        original: The object as currently stored (updates only)
        user: The user that made the request, if any
        master: True when the master key was used
        ip: Client IP address
        headers: Original request headers
        installation_id: Installation that made the request, if any
        context: Free-form context shared between before and after hooks
        log: Logger hooks can write to (set by the dispatcher if empty)
    """

    trigger_name: str = ""
    object: Any = None
    original: Any = None
    user: Any = None
    master: bool = False
    ip: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    installation_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    log: logging.Logger | None = None


@dataclass
class FindRequest(TriggerRequest):
    """Request passed to beforeFind / afterFind triggers.

    Attributes:
        query: The query triggering the hook
        results: Results the query yielded (afterFind only)
        is_get: True for a get-by-id, False for a find
        count: True when only a count was requested
    """

    query: Any = None
    results: list[Any] | None = None
    is_get: bool = False
    count: bool = False


@dataclass
class FileTriggerRequest(TriggerRequest):
    """Request passed to file triggers.

    Attributes:
        file: File metadata (name, url, content type, byte source)
        file_size: Size of the file in bytes
        content_length: Value from the Content-Length header
    """

    file: Any = None
    file_size: int | None = None
    content_length: int | None = None


@dataclass
class ConnectTriggerRequest:
    """Request passed to beforeConnect triggers."""

    trigger_name: str = ""
    user: Any = None
    master: bool = False
    installation_id: str | None = None
    session_token: str | None = None
    clients: int = 0
    subscriptions: int = 0
    log: logging.Logger | None = None


@dataclass
class LiveQueryEvent:
    """Event passed to the live query event handler."""

    event: str
    clients: int = 0
    subscriptions: int = 0
    session_token: str | None = None
    use_master_key: bool = False
    installation_id: str | None = None
    error: str | None = None
    log: logging.Logger | None = None


@dataclass
class FunctionRequest:
    """Request passed to cloud functions."""

    params: dict[str, Any] = field(default_factory=dict)
    user: Any = None
    master: bool = False
    ip: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    installation_id: str | None = None
    function_name: str = ""
    log: logging.Logger | None = None


@dataclass
class JobRequest:
    """Request passed to background jobs.

    ``message(text)`` updates the status message of the running job; the job
    runner provides ``on_message`` to persist it.
    """

    params: dict[str, Any] = field(default_factory=dict)
    job_name: str = ""
    on_message: Callable[[str], None] | None = None
    messages: list[str] = field(default_factory=list)
    log: logging.Logger | None = None

    def message(self, text: str) -> None:
        self.messages.append(text)
        if self.on_message is not None:
            self.on_message(text)
