"""Hook registry for cloudhooks.

Stores trigger, function, job, connect and live query registrations for
every tenant of a runtime. Writes are rare (application startup, hot reload)
and reads happen on every platform request, so the tables live in one
immutable snapshot that writers rebuild and swap in a single assignment.
Readers never take a lock and never see a half-applied write.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from cloudhooks.triggers.errors import DuplicateRegistrationError
from cloudhooks.triggers.types import (
    FunctionRegistration,
    HandlerFn,
    JobRegistration,
    Registration,
    TriggerKey,
    TriggerKind,
    ValidatorFn,
    ensure_callable,
)

logger = logging.getLogger(__name__)


def _empty() -> Mapping[Any, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class _Snapshot:
    """One consistent version of every table. Never mutated after publish."""

    triggers: Mapping[TriggerKey, Registration] = field(default_factory=_empty)
    functions: Mapping[tuple[str, str], FunctionRegistration] = field(
        default_factory=_empty
    )
    jobs: Mapping[tuple[str, str], JobRegistration] = field(default_factory=_empty)
    connect: Mapping[str, Registration] = field(default_factory=_empty)
    live_query: Mapping[str, HandlerFn] = field(default_factory=_empty)
    # (tenant, kind) -> classes with a handler, derived from triggers
    class_index: Mapping[tuple[str, TriggerKind], frozenset[str]] = field(
        default_factory=_empty
    )


def _index_classes(
    triggers: Mapping[TriggerKey, Registration],
) -> Mapping[tuple[str, TriggerKind], frozenset[str]]:
    index: dict[tuple[str, TriggerKind], set[str]] = {}
    for key in triggers:
        if key.class_name is not None:
            index.setdefault((key.tenant_id, key.kind), set()).add(key.class_name)
    return MappingProxyType({k: frozenset(v) for k, v in index.items()})


def _key_tenant(key: TriggerKey) -> str:
    return key.tenant_id


def _pair_tenant(key: tuple[str, str]) -> str:
    return key[0]


def _same(key: str) -> str:
    return key


def _without_tenant(
    table: Mapping[Any, Any], tenant_id: str, tenant_of: Callable[[Any], str]
) -> Mapping[Any, Any]:
    return MappingProxyType(
        {k: v for k, v in table.items() if tenant_of(k) != tenant_id}
    )


class HookRegistry:
    """Registry of hook registrations for all tenants of a runtime.

    Every entry is keyed by tenant, so tenants never see each other's hooks.
    Registering an occupied key replaces the previous entry (last write wins)
    unless the registry was created with ``strict=True``.

    Example:
        registry = HookRegistry()
        key = TriggerKey.build("app1", TriggerKind.BEFORE_SAVE, "Score")
        registry.register(key, validate_score)
        registration = registry.lookup(key)
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._snapshot = _Snapshot()
        self._write_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Write helpers
    # -------------------------------------------------------------------------

    def _publish(self, **changes: Any) -> None:
        """Swap in a new snapshot. Caller must hold the write lock."""
        if "triggers" in changes:
            changes["class_index"] = _index_classes(changes["triggers"])
        current = self._snapshot
        self._snapshot = _Snapshot(
            triggers=changes.get("triggers", current.triggers),
            functions=changes.get("functions", current.functions),
            jobs=changes.get("jobs", current.jobs),
            connect=changes.get("connect", current.connect),
            live_query=changes.get("live_query", current.live_query),
            class_index=changes.get("class_index", current.class_index),
        )

    def _put(self, table_name: str, key: Any, value: Any, label: str) -> None:
        with self._write_lock:
            table = getattr(self._snapshot, table_name)
            if key in table:
                if self.strict:
                    raise DuplicateRegistrationError(
                        f"{label} is already registered. "
                        "Strict registration forbids replacing hooks."
                    )
                logger.warning("%s already registered, replacing", label)
            updated = dict(table)
            updated[key] = value
            self._publish(**{table_name: MappingProxyType(updated)})
        logger.debug("Registered %s", label)

    def _pop(self, table_name: str, key: Any) -> bool:
        with self._write_lock:
            table = getattr(self._snapshot, table_name)
            if key not in table:
                return False
            updated = dict(table)
            del updated[key]
            self._publish(**{table_name: MappingProxyType(updated)})
        return True

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def register(
        self,
        key: TriggerKey,
        handler: HandlerFn,
        validator: ValidatorFn | None = None,
    ) -> Registration:
        """Register a trigger handler under a key.

        Args:
            key: The (tenant, kind, class) identity
            handler: Function invoked when the trigger fires
            validator: Optional guard run before the handler

        Returns:
            The stored Registration

        Raises:
            RegistrationError: If handler or validator is not callable
            DuplicateRegistrationError: In strict mode, if the key is taken
        """
        ensure_callable(handler, f"Handler for {key.kind.value}")
        if validator is not None:
            ensure_callable(validator, f"Validator for {key.kind.value}")
        registration = Registration(key=key, handler=handler, validator=validator)
        if key.kind is TriggerKind.BEFORE_CONNECT:
            self._put("connect", key.tenant_id, registration, f"Trigger {key}")
        else:
            self._put("triggers", key, registration, f"Trigger {key}")
        return registration

    def unregister(self, key: TriggerKey) -> None:
        """Remove the registration at key. No-op if absent."""
        if key.kind is TriggerKind.BEFORE_CONNECT:
            removed = self._pop("connect", key.tenant_id)
        else:
            removed = self._pop("triggers", key)
        if removed:
            logger.debug("Unregistered trigger %s", key)

    def lookup(self, key: TriggerKey) -> Registration | None:
        """Get the registration at key, or None. Lock free."""
        if key.kind is TriggerKind.BEFORE_CONNECT:
            return self._snapshot.connect.get(key.tenant_id)
        return self._snapshot.triggers.get(key)

    def list_classes_with_handlers(
        self, tenant_id: str, kind: TriggerKind
    ) -> frozenset[str]:
        """Class names that have a handler for kind in tenant.

        Lets the storage layer skip trigger evaluation entirely for classes
        without hooks.
        """
        return self._snapshot.class_index.get((tenant_id, kind), frozenset())

    def list_registrations(self, tenant_id: str | None = None) -> list[Registration]:
        """List trigger registrations, sorted by kind then class."""
        snapshot = self._snapshot
        registrations = list(snapshot.triggers.values()) + list(
            snapshot.connect.values()
        )
        if tenant_id is not None:
            registrations = [r for r in registrations if r.key.tenant_id == tenant_id]
        return sorted(
            registrations,
            key=lambda r: (r.key.tenant_id, r.key.kind.value, r.key.class_name or ""),
        )

    # -------------------------------------------------------------------------
    # Functions and jobs
    # -------------------------------------------------------------------------

    def register_function(
        self,
        tenant_id: str,
        name: str,
        handler: HandlerFn,
        validator: ValidatorFn | None = None,
    ) -> FunctionRegistration:
        """Register a cloud function by name."""
        ensure_callable(handler, f"Function '{name}'")
        if validator is not None:
            ensure_callable(validator, f"Validator for function '{name}'")
        registration = FunctionRegistration(
            tenant_id=tenant_id, name=name, handler=handler, validator=validator
        )
        self._put(
            "functions", (tenant_id, name), registration, f"Function {tenant_id}/{name}"
        )
        return registration

    def lookup_function(self, tenant_id: str, name: str) -> FunctionRegistration | None:
        return self._snapshot.functions.get((tenant_id, name))

    def unregister_function(self, tenant_id: str, name: str) -> None:
        self._pop("functions", (tenant_id, name))

    def list_functions(self, tenant_id: str) -> list[str]:
        """List function names registered for a tenant, sorted."""
        return sorted(n for t, n in self._snapshot.functions if t == tenant_id)

    def register_job(
        self, tenant_id: str, name: str, handler: HandlerFn
    ) -> JobRegistration:
        """Register a background job by name."""
        ensure_callable(handler, f"Job '{name}'")
        registration = JobRegistration(tenant_id=tenant_id, name=name, handler=handler)
        self._put("jobs", (tenant_id, name), registration, f"Job {tenant_id}/{name}")
        return registration

    def lookup_job(self, tenant_id: str, name: str) -> JobRegistration | None:
        return self._snapshot.jobs.get((tenant_id, name))

    def unregister_job(self, tenant_id: str, name: str) -> None:
        self._pop("jobs", (tenant_id, name))

    def list_jobs(self, tenant_id: str) -> list[str]:
        """List job names registered for a tenant, sorted."""
        return sorted(n for t, n in self._snapshot.jobs if t == tenant_id)

    # -------------------------------------------------------------------------
    # Connection-level handlers
    # -------------------------------------------------------------------------

    def register_connect_handler(
        self,
        tenant_id: str,
        handler: HandlerFn,
        validator: ValidatorFn | None = None,
    ) -> Registration:
        """Register the tenant's beforeConnect handler."""
        key = TriggerKey(tenant_id, TriggerKind.BEFORE_CONNECT)
        return self.register(key, handler, validator)

    def lookup_connect_handler(self, tenant_id: str) -> Registration | None:
        return self._snapshot.connect.get(tenant_id)

    def register_live_query_handler(self, tenant_id: str, handler: HandlerFn) -> None:
        """Register the tenant's live query event handler."""
        ensure_callable(handler, "Live query event handler")
        self._put(
            "live_query", tenant_id, handler, f"Live query handler {tenant_id}"
        )

    def lookup_live_query_handler(self, tenant_id: str) -> HandlerFn | None:
        return self._snapshot.live_query.get(tenant_id)

    # -------------------------------------------------------------------------
    # Teardown and introspection
    # -------------------------------------------------------------------------

    def unregister_all(self, tenant_id: str | None = None) -> None:
        """Clear registrations for one tenant, or for every tenant.

        Without a tenant this is a global reset, intended for tests.
        """
        with self._write_lock:
            if tenant_id is None:
                self._snapshot = _Snapshot()
            else:
                snapshot = self._snapshot
                self._publish(
                    triggers=_without_tenant(
                        snapshot.triggers, tenant_id, _key_tenant
                    ),
                    functions=_without_tenant(
                        snapshot.functions, tenant_id, _pair_tenant
                    ),
                    jobs=_without_tenant(snapshot.jobs, tenant_id, _pair_tenant),
                    connect=_without_tenant(snapshot.connect, tenant_id, _same),
                    live_query=_without_tenant(snapshot.live_query, tenant_id, _same),
                )
        if tenant_id is None:
            logger.info("Cleared all hook registrations")
        else:
            logger.info("Cleared hook registrations for tenant %s", tenant_id)

    def replace_tenant(self, tenant_id: str, staged: HookRegistry) -> None:
        """Swap one tenant's registrations for the ones staged in another registry.

        The swap is a single publish: readers see the old set or the new one,
        never a tenant with only part of its hooks.
        """
        source = staged._snapshot
        with self._write_lock:
            current = self._snapshot

            def merge(name: str, tenant_of: Callable[[Any], str]) -> Mapping[Any, Any]:
                table = {
                    k: v
                    for k, v in getattr(current, name).items()
                    if tenant_of(k) != tenant_id
                }
                table.update(
                    (k, v)
                    for k, v in getattr(source, name).items()
                    if tenant_of(k) == tenant_id
                )
                return MappingProxyType(table)

            self._publish(
                triggers=merge("triggers", _key_tenant),
                functions=merge("functions", _pair_tenant),
                jobs=merge("jobs", _pair_tenant),
                connect=merge("connect", _same),
                live_query=merge("live_query", _same),
            )
        logger.info("Replaced hook registrations for tenant %s", tenant_id)

    def list_tenants(self) -> list[str]:
        """Tenants with at least one registration, sorted."""
        snapshot = self._snapshot
        tenants = {k.tenant_id for k in snapshot.triggers}
        tenants.update(t for t, _ in snapshot.functions)
        tenants.update(t for t, _ in snapshot.jobs)
        tenants.update(snapshot.connect)
        tenants.update(snapshot.live_query)
        return sorted(tenants)

    def get_stats(self, tenant_id: str | None = None) -> dict[str, int]:
        """Return registration counts by table."""
        snapshot = self._snapshot

        def count(keys: Mapping[Any, Any], tenant_of: Callable[[Any], str]) -> int:
            if tenant_id is None:
                return len(keys)
            return sum(1 for k in keys if tenant_of(k) == tenant_id)

        stats = {
            "triggers": count(snapshot.triggers, _key_tenant),
            "functions": count(snapshot.functions, _pair_tenant),
            "jobs": count(snapshot.jobs, _pair_tenant),
            "connect": count(snapshot.connect, _same),
            "live_query": count(snapshot.live_query, _same),
        }
        stats["total"] = sum(stats.values())
        return stats

    def __repr__(self) -> str:
        return f"HookRegistry(tenants={len(self.list_tenants())}, strict={self.strict})"
