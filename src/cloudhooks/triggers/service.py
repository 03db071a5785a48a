"""Trigger dispatch service for cloudhooks.

Called by the platform layers (storage engine, file adapter, realtime
server) when a lifecycle event occurs. Resolves the registration for the
event, runs its validator, then its handler, and returns a DispatchResult
the caller uses to continue, replace its input, or abort.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cloudhooks.config import HookConfig
from cloudhooks.triggers.errors import HandlerFailed, TriggerError, ValidationFailed
from cloudhooks.triggers.registry import HookRegistry
from cloudhooks.triggers.types import (
    HandlerFn,
    Registration,
    TriggerKey,
    TriggerKind,
    ValidatorFn,
)

logger = logging.getLogger(__name__)

# Request attribute a handler's return value replaces, per kind
_SUBJECTS = {
    TriggerKind.BEFORE_SAVE: "object",
    TriggerKind.BEFORE_FIND: "query",
    TriggerKind.AFTER_FIND: "results",
    TriggerKind.BEFORE_SAVE_FILE: "file",
}


class DispatchStatus(Enum):
    """Outcome of a dispatch."""

    NOOP = "noop"  # No handler registered, proceed with default behavior
    COMPLETED = "completed"
    REJECTED = "rejected"  # Validator failed, handler not invoked
    FAILED = "failed"  # Handler raised


@dataclass
class DispatchResult:
    """Normalized outcome returned to the platform layer.

    Attributes:
        status: What happened
        kind: Trigger kind, None for functions, jobs and live query events
        class_name: Target class for class-scoped kinds
        name: Function or job name
        value: For beforeSave/beforeFind/afterFind/beforeSaveFile, the object,
            query, results or file to continue with. Otherwise the handler's
            return value.
        error: Typed error when status is REJECTED or FAILED
        blocking: Whether a failure must stop the platform operation
    """

    status: DispatchStatus
    kind: TriggerKind | None = None
    class_name: str | None = None
    name: str | None = None
    value: Any = None
    error: TriggerError | None = None
    blocking: bool = True

    @property
    def handled(self) -> bool:
        """True if a registered handler (or validator) ran."""
        return self.status is not DispatchStatus.NOOP

    @property
    def aborts(self) -> bool:
        """True if the platform operation must not proceed."""
        return self.blocking and self.status in (
            DispatchStatus.REJECTED,
            DispatchStatus.FAILED,
        )

    def raise_for_abort(self) -> None:
        """Raise the typed error if the outcome aborts the operation."""
        if self.aborts and self.error is not None:
            raise self.error


async def _call(fn: HandlerFn | ValidatorFn, request: Any) -> Any:
    """Invoke a sync or async hook function and wait for its result."""
    result = fn(request)
    if inspect.isawaitable(result):
        result = await result
    return result


def _tenant_logger(tenant_id: str) -> logging.Logger:
    return logging.getLogger(f"cloudhooks.cloud.{tenant_id}")


def _prepare(
    request: Any, tenant_id: str, name_attr: str | None = None, name: str = ""
) -> None:
    """Fill in the trigger name and logger if the caller left them empty."""
    if name_attr and hasattr(request, name_attr) and not getattr(request, name_attr):
        setattr(request, name_attr, name)
    if hasattr(request, "log") and request.log is None:
        request.log = _tenant_logger(tenant_id)


class TriggerDispatcher:
    """Resolves and invokes hooks for lifecycle events.

    Holds no state besides the registry handle and config, so resolving the
    same key twice yields the same registration unless it was replaced in
    between. Timeouts and cancellation are left to the caller.
    """

    def __init__(self, registry: HookRegistry, config: HookConfig | None = None):
        self.registry = registry
        self.config = config or HookConfig()

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def get_trigger(
        self,
        tenant_id: str,
        kind: TriggerKind | str,
        class_name: Any = None,
    ) -> Registration | None:
        """Resolve the registration for an event, or None."""
        return self.registry.lookup(TriggerKey.build(tenant_id, kind, class_name))

    def has_trigger(
        self,
        tenant_id: str,
        kind: TriggerKind | str,
        class_name: Any = None,
    ) -> bool:
        return self.get_trigger(tenant_id, kind, class_name) is not None

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    async def dispatch(
        self,
        tenant_id: str,
        kind: TriggerKind | str,
        request: Any,
        class_name: Any = None,
    ) -> DispatchResult:
        """Run the trigger registered for an event.

        Args:
            tenant_id: Tenant the event belongs to
            kind: Trigger kind
            request: Request object assembled by the calling layer
            class_name: Target class (string or descriptor) for class-scoped kinds

        Returns:
            DispatchResult. NOOP when nothing is registered.
        """
        key = TriggerKey.build(tenant_id, kind, class_name)
        kind = key.kind
        subject = _SUBJECTS.get(kind)
        registration = self.registry.lookup(key)

        result = DispatchResult(
            status=DispatchStatus.NOOP,
            kind=kind,
            class_name=key.class_name,
            blocking=kind.is_before,
        )
        if subject is not None:
            result.value = getattr(request, subject, None)
        if registration is None:
            return result

        _prepare(request, tenant_id, "trigger_name", kind.value)
        label = str(key)

        error = await self._validate(registration.validator, request, result, tenant_id)
        if error is not None:
            result.status = DispatchStatus.REJECTED
            result.error = error
            self._log_failure(result, label)
            return result

        try:
            returned = await _call(registration.handler, request)
        except Exception as exc:
            result.status = DispatchStatus.FAILED
            result.error = self._handler_error(exc, result, tenant_id)
            self._log_failure(result, label)
            return result

        result.status = DispatchStatus.COMPLETED
        if subject is None or returned is not None:
            result.value = returned
        self._log_success(result, label)
        return result

    async def dispatch_connect(self, tenant_id: str, request: Any) -> DispatchResult:
        """Run the tenant's beforeConnect trigger."""
        return await self.dispatch(tenant_id, TriggerKind.BEFORE_CONNECT, request)

    async def dispatch_live_query_event(
        self, tenant_id: str, event: Any
    ) -> DispatchResult:
        """Notify the tenant's live query event handler. Never blocking."""
        handler = self.registry.lookup_live_query_handler(tenant_id)
        result = DispatchResult(
            status=DispatchStatus.NOOP, name="liveQueryEvent", blocking=False
        )
        if handler is None:
            return result

        _prepare(event, tenant_id)
        try:
            result.value = await _call(handler, event)
        except Exception as exc:
            result.status = DispatchStatus.FAILED
            result.error = self._handler_error(exc, result, tenant_id)
            self._log_failure(result, f"{tenant_id}/liveQueryEvent")
            return result

        result.status = DispatchStatus.COMPLETED
        self._log_success(result, f"{tenant_id}/liveQueryEvent")
        return result

    # -------------------------------------------------------------------------
    # Functions and jobs
    # -------------------------------------------------------------------------

    async def run_function(
        self, tenant_id: str, name: str, request: Any
    ) -> DispatchResult:
        """Run a cloud function: validator first, then the function."""
        registration = self.registry.lookup_function(tenant_id, name)
        result = DispatchResult(status=DispatchStatus.NOOP, name=name)
        if registration is None:
            return result

        _prepare(request, tenant_id, "function_name", name)
        label = f"{tenant_id}/function:{name}"

        error = await self._validate(registration.validator, request, result, tenant_id)
        if error is not None:
            result.status = DispatchStatus.REJECTED
            result.error = error
            self._log_failure(result, label)
            return result

        try:
            result.value = await _call(registration.handler, request)
        except Exception as exc:
            result.status = DispatchStatus.FAILED
            result.error = self._handler_error(exc, result, tenant_id)
            self._log_failure(result, label)
            return result

        result.status = DispatchStatus.COMPLETED
        self._log_success(result, label)
        return result

    async def run_job(self, tenant_id: str, name: str, request: Any) -> DispatchResult:
        """Run a background job to completion.

        Scheduling (running it detached from the request) is the caller's job.
        """
        registration = self.registry.lookup_job(tenant_id, name)
        result = DispatchResult(status=DispatchStatus.NOOP, name=name)
        if registration is None:
            return result

        _prepare(request, tenant_id, "job_name", name)
        label = f"{tenant_id}/job:{name}"
        try:
            result.value = await _call(registration.handler, request)
        except Exception as exc:
            result.status = DispatchStatus.FAILED
            result.error = self._handler_error(exc, result, tenant_id)
            self._log_failure(result, label)
            return result

        result.status = DispatchStatus.COMPLETED
        self._log_success(result, label)
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _validate(
        self,
        validator: ValidatorFn | None,
        request: Any,
        result: DispatchResult,
        tenant_id: str,
    ) -> ValidationFailed | None:
        """Run a validator. Raising or returning False rejects the request."""
        if validator is None:
            return None
        try:
            verdict = await _call(validator, request)
        except Exception as exc:
            error = ValidationFailed(
                str(exc) or "Validation failed",
                kind=result.kind,
                class_name=result.class_name,
                name=result.name,
                tenant_id=tenant_id,
            )
            error.__cause__ = exc
            return error
        if verdict is False:
            return ValidationFailed(
                "Validation failed",
                kind=result.kind,
                class_name=result.class_name,
                name=result.name,
                tenant_id=tenant_id,
            )
        return None

    def _handler_error(
        self, exc: Exception, result: DispatchResult, tenant_id: str
    ) -> HandlerFailed:
        error = HandlerFailed(
            str(exc) or type(exc).__name__,
            kind=result.kind,
            class_name=result.class_name,
            name=result.name,
            tenant_id=tenant_id,
        )
        error.__cause__ = exc
        return error

    def _log_success(self, result: DispatchResult, label: str) -> None:
        level = (
            self.config.before_success_log_level
            if result.blocking
            else self.config.after_log_level
        )
        logger.log(level, "Hook %s completed", label)

    def _log_failure(self, result: DispatchResult, label: str) -> None:
        if result.blocking:
            logger.log(
                self.config.before_error_log_level,
                "Hook %s %s: %s",
                label,
                result.status.value,
                result.error,
            )
        else:
            # The operation already happened; report only
            logger.error(
                "Hook %s %s: %s", label, result.status.value, result.error
            )
