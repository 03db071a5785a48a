"""Tenant runtime context.

Owns the HookRegistry and TriggerDispatcher shared by every tenant hosted in
the process, and loads each tenant's cloud code into it. A cloud code module
exposes a ``register(cloud)`` function:

    # myapp/cloud.py
    def register(cloud):
        cloud.before_save("Score", check_score)
        cloud.define("hello", lambda request: "Hello world!")

    runtime = HookRuntime()
    runtime.load_cloud_code("app1", "myapp.cloud")
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from types import ModuleType
from typing import Any

from cloudhooks.cloud import CloudHooks
from cloudhooks.config import HookConfig
from cloudhooks.triggers.errors import RegistrationError
from cloudhooks.triggers.registry import HookRegistry
from cloudhooks.triggers.service import TriggerDispatcher

logger = logging.getLogger(__name__)

ENTRY_POINT = "register"

CloudCode = str | ModuleType | Callable[[CloudHooks], Any]


class HookRuntime:
    """Process-level context holding hooks for many tenants.

    Args:
        config: Runtime configuration (defaults to HookConfig())
    """

    def __init__(self, config: HookConfig | None = None):
        self.config = config or HookConfig()
        self.registry = HookRegistry(strict=self.config.strict_registration)
        self.dispatcher = TriggerDispatcher(self.registry, self.config)
        self._sources: dict[str, CloudCode] = {}

    @classmethod
    def from_env(cls) -> HookRuntime:
        return cls(HookConfig.from_env())

    def cloud(self, tenant_id: str) -> CloudHooks:
        """Registration facade bound to tenant_id."""
        if not tenant_id:
            raise RegistrationError("A tenant id is required")
        return CloudHooks(self.registry, tenant_id)

    def load_cloud_code(self, tenant_id: str, source: CloudCode) -> CloudHooks:
        """Register a tenant's hooks from cloud code.

        Args:
            tenant_id: Tenant the hooks belong to
            source: Dotted module path, imported module, or a callable taking
                the CloudHooks facade

        Returns:
            The facade the hooks were registered through

        Raises:
            RegistrationError: If the module has no register() entry point
        """
        cloud = self.cloud(tenant_id)
        entry = self._resolve_entry(source)
        entry(cloud)
        self._sources[tenant_id] = source
        logger.info(
            "Loaded %d hook(s) for tenant %s",
            self.registry.get_stats(tenant_id)["total"],
            tenant_id,
        )
        return cloud

    def reload_cloud_code(self, tenant_id: str) -> CloudHooks:
        """Replace a tenant's hooks with a fresh run of the same source.

        Modules given by path or object are re-imported first so edits to
        the code take effect. The new hooks are registered into a staging
        registry and swapped in at once. Until then dispatch keeps using the
        previous hooks, and they stay in place if the cloud code raises.
        """
        source = self._sources.get(tenant_id)
        if source is None:
            raise RegistrationError(f"No cloud code loaded for tenant {tenant_id!r}")
        if isinstance(source, str):
            source = importlib.reload(importlib.import_module(source))
        elif isinstance(source, ModuleType):
            source = importlib.reload(source)

        staged = HookRegistry(strict=self.registry.strict)
        self._resolve_entry(source)(CloudHooks(staged, tenant_id))
        self.registry.replace_tenant(tenant_id, staged)
        self._sources[tenant_id] = source
        logger.info(
            "Reloaded %d hook(s) for tenant %s",
            self.registry.get_stats(tenant_id)["total"],
            tenant_id,
        )
        return self.cloud(tenant_id)

    def teardown(self, tenant_id: str) -> None:
        """Drop every hook of one tenant."""
        self.registry.unregister_all(tenant_id)
        self._sources.pop(tenant_id, None)

    def reset(self) -> None:
        """Drop every hook of every tenant. For tests."""
        self.registry.unregister_all()
        self._sources.clear()

    def _resolve_entry(self, source: CloudCode) -> Callable[[CloudHooks], Any]:
        if isinstance(source, str):
            source = importlib.import_module(source)
        if isinstance(source, ModuleType):
            entry = getattr(source, ENTRY_POINT, None)
            if not callable(entry):
                raise RegistrationError(
                    f"Cloud code module '{source.__name__}' has no "
                    f"{ENTRY_POINT}(cloud) function"
                )
            return entry
        if callable(source):
            return source
        raise RegistrationError(f"Cannot load cloud code from {source!r}")

    def __repr__(self) -> str:
        return f"HookRuntime(tenants={self.registry.list_tenants()})"
