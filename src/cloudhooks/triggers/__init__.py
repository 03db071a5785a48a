"""Trigger registry and dispatch.

Hooks are keyed by (tenant, kind, class) and run around platform lifecycle
events:
- beforeSave / beforeDelete / beforeFind / beforeLogin / beforeSubscribe:
  can abort the operation; beforeSave and beforeFind can replace their input
- afterSave / afterDelete / afterFind / afterLogin / afterLogout: run after
  the operation; failures are reported, never rolled back
- file triggers (beforeSaveFile, ...) and beforeConnect: not class-scoped

Usage:
    from cloudhooks.triggers import HookRegistry, TriggerDispatcher, TriggerKey, TriggerKind

    registry = HookRegistry()
    registry.register(TriggerKey.build("app1", TriggerKind.BEFORE_SAVE, "Score"), check)
    result = await TriggerDispatcher(registry).dispatch(
        "app1", TriggerKind.BEFORE_SAVE, request, "Score"
    )
    result.raise_for_abort()
"""

from cloudhooks.triggers.errors import (
    CloudHooksError,
    DuplicateRegistrationError,
    HandlerFailed,
    RegistrationError,
    TriggerError,
    ValidationFailed,
)
from cloudhooks.triggers.registry import HookRegistry
from cloudhooks.triggers.requests import (
    ConnectTriggerRequest,
    FileTriggerRequest,
    FindRequest,
    FunctionRequest,
    JobRequest,
    LiveQueryEvent,
    TriggerRequest,
)
from cloudhooks.triggers.service import DispatchResult, DispatchStatus, TriggerDispatcher
from cloudhooks.triggers.types import (
    ByDescriptor,
    ByName,
    ClassRef,
    FunctionRegistration,
    JobRegistration,
    Registration,
    TriggerKey,
    TriggerKind,
    TriggerScope,
    class_ref,
    names_class,
    parse_kind,
    resolve_class_name,
)

__all__ = [
    "ByDescriptor",
    "ByName",
    "ClassRef",
    "CloudHooksError",
    "ConnectTriggerRequest",
    "DispatchResult",
    "DispatchStatus",
    "DuplicateRegistrationError",
    "FileTriggerRequest",
    "FindRequest",
    "FunctionRegistration",
    "FunctionRequest",
    "HandlerFailed",
    "HookRegistry",
    "JobRegistration",
    "JobRequest",
    "LiveQueryEvent",
    "Registration",
    "RegistrationError",
    "TriggerDispatcher",
    "TriggerError",
    "TriggerKey",
    "TriggerKind",
    "TriggerRequest",
    "TriggerScope",
    "ValidationFailed",
    "class_ref",
    "names_class",
    "parse_kind",
    "resolve_class_name",
]
