"""cloudhooks: multi-tenant hook registry and dispatch core.

Usage:
    from cloudhooks import HookRuntime

    runtime = HookRuntime()
    cloud = runtime.cloud("app1")

    @cloud.before_save("Score")
    async def check_score(request):
        ...

    result = await runtime.dispatcher.dispatch(
        "app1", "beforeSave", request, "Score"
    )
"""

from cloudhooks.cloud import CloudHooks
from cloudhooks.config import HookConfig
from cloudhooks.runtime import HookRuntime
from cloudhooks.triggers import (
    DispatchResult,
    DispatchStatus,
    HookRegistry,
    TriggerDispatcher,
    TriggerKey,
    TriggerKind,
)

__version__ = "0.1.0"

__all__ = [
    "CloudHooks",
    "DispatchResult",
    "DispatchStatus",
    "HookConfig",
    "HookRegistry",
    "HookRuntime",
    "TriggerDispatcher",
    "TriggerKey",
    "TriggerKind",
    "__version__",
]
