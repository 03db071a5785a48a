"""Cloud code registration API.

One method per trigger kind, bound to a tenant. Every method returns the
handler, and returns a decorator when the handler is omitted:

    cloud = runtime.cloud("app1")

    @cloud.before_save("Score")
    async def check_score(request):
        if request.object["score"] < 0:
            raise ValueError("Score must be positive")

    @cloud.before_login
    def block_banned(request):
        ...

    cloud.after_logout("_Session", cleanup)
"""

import warnings
from collections.abc import Callable
from typing import Any

from cloudhooks.triggers.errors import RegistrationError
from cloudhooks.triggers.registry import HookRegistry
from cloudhooks.triggers.types import (
    HandlerFn,
    TriggerKey,
    TriggerKind,
    ValidatorFn,
    class_ref as to_class_ref,
    names_class,
)

Decorator = Callable[[HandlerFn], HandlerFn]


class CloudHooks:
    """Registers hooks for one tenant into a shared HookRegistry.

    Args:
        registry: Registry the hooks are stored in
        tenant_id: Tenant every registration is scoped to
    """

    def __init__(self, registry: HookRegistry, tenant_id: str):
        self.registry = registry
        self.tenant_id = tenant_id

    def __repr__(self) -> str:
        return f"CloudHooks(tenant={self.tenant_id!r})"

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _trigger(
        self,
        kind: TriggerKind,
        target: Any,
        handler: HandlerFn | None,
        validator: ValidatorFn | None,
    ) -> HandlerFn | Decorator:
        # Normalize eagerly so a bad class reference fails even in decorator form
        key = TriggerKey.build(self.tenant_id, kind, target)

        def register(fn: HandlerFn) -> HandlerFn:
            self.registry.register(key, fn, validator)
            return fn

        if handler is None:
            return register
        return register(handler)

    def _class_trigger(
        self,
        kind: TriggerKind,
        class_ref: Any,
        handler: HandlerFn | None,
        validator: ValidatorFn | None,
    ) -> HandlerFn | Decorator:
        return self._trigger(kind, to_class_ref(class_ref), handler, validator)

    # -------------------------------------------------------------------------
    # Object triggers: (class_ref, handler)
    # -------------------------------------------------------------------------

    def before_save(
        self,
        class_ref: Any,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function before an object of class_ref is saved.

        The handler may raise to reject the save, or return a replacement
        object. class_ref is a class name or a descriptor declaring
        ``class_name``.
        """
        return self._class_trigger(TriggerKind.BEFORE_SAVE, class_ref, handler, validator)

    def after_save(
        self,
        class_ref: Any,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function after an object of class_ref is saved."""
        return self._class_trigger(TriggerKind.AFTER_SAVE, class_ref, handler, validator)

    def before_delete(
        self,
        class_ref: Any,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function before an object of class_ref is deleted.

        Raising from the handler prevents the delete.
        """
        return self._class_trigger(
            TriggerKind.BEFORE_DELETE, class_ref, handler, validator
        )

    def after_delete(
        self,
        class_ref: Any,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        return self._class_trigger(
            TriggerKind.AFTER_DELETE, class_ref, handler, validator
        )

    def before_find(
        self,
        class_ref: Any,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function before a query on class_ref.

        A query returned by the handler is executed instead of the original.
        """
        return self._class_trigger(TriggerKind.BEFORE_FIND, class_ref, handler, validator)

    def after_find(
        self,
        class_ref: Any,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function after a query on class_ref.

        Results returned by the handler replace the query results.
        """
        return self._class_trigger(TriggerKind.AFTER_FIND, class_ref, handler, validator)

    def before_subscribe(
        self,
        class_ref: Any,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function before a live query subscription on class_ref."""
        return self._class_trigger(
            TriggerKind.BEFORE_SUBSCRIBE, class_ref, handler, validator
        )

    # -------------------------------------------------------------------------
    # Session triggers: (handler) or (class_ref, handler)
    # -------------------------------------------------------------------------

    def _session_trigger(
        self,
        kind: TriggerKind,
        handler_or_class: Any,
        handler: HandlerFn | None,
        class_ref: Any,
        validator: ValidatorFn | None,
    ) -> HandlerFn | Decorator:
        if handler_or_class is not None and names_class(handler_or_class):
            if class_ref is not None:
                raise RegistrationError(
                    f"{kind.value}: class given both positionally and as class_ref"
                )
            class_ref, handler_or_class = handler_or_class, handler
        elif handler is not None:
            raise RegistrationError(
                f"{kind.value}: the first of two arguments must name a class"
            )
        target = None if class_ref is None else to_class_ref(class_ref)
        return self._trigger(kind, target, handler_or_class, validator)

    def before_login(
        self,
        handler_or_class: Any = None,
        handler: HandlerFn | None = None,
        *,
        class_ref: Any = None,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function before a user logs in.

        Registers for ``_User`` unless a class is given, either first as in
        ``before_login("Admin", handler)`` or as ``class_ref=``. Raising from
        the handler rejects the login.
        """
        return self._session_trigger(
            TriggerKind.BEFORE_LOGIN, handler_or_class, handler, class_ref, validator
        )

    def after_login(
        self,
        handler_or_class: Any = None,
        handler: HandlerFn | None = None,
        *,
        class_ref: Any = None,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function after a user logs in. Defaults to ``_User``."""
        return self._session_trigger(
            TriggerKind.AFTER_LOGIN, handler_or_class, handler, class_ref, validator
        )

    def after_logout(
        self,
        handler_or_class: Any = None,
        handler: HandlerFn | None = None,
        *,
        class_ref: Any = None,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Run a function after a user logs out. Defaults to ``_Session``."""
        return self._session_trigger(
            TriggerKind.AFTER_LOGOUT, handler_or_class, handler, class_ref, validator
        )

    # -------------------------------------------------------------------------
    # File and connection triggers: (handler)
    # -------------------------------------------------------------------------

    def before_save_file(
        self, handler: HandlerFn | None = None, *, validator: ValidatorFn | None = None
    ) -> HandlerFn | Decorator:
        """Run a function before a file is saved. A returned file replaces it."""
        return self._trigger(TriggerKind.BEFORE_SAVE_FILE, None, handler, validator)

    def after_save_file(
        self, handler: HandlerFn | None = None, *, validator: ValidatorFn | None = None
    ) -> HandlerFn | Decorator:
        return self._trigger(TriggerKind.AFTER_SAVE_FILE, None, handler, validator)

    def before_delete_file(
        self, handler: HandlerFn | None = None, *, validator: ValidatorFn | None = None
    ) -> HandlerFn | Decorator:
        return self._trigger(TriggerKind.BEFORE_DELETE_FILE, None, handler, validator)

    def after_delete_file(
        self, handler: HandlerFn | None = None, *, validator: ValidatorFn | None = None
    ) -> HandlerFn | Decorator:
        return self._trigger(TriggerKind.AFTER_DELETE_FILE, None, handler, validator)

    def before_connect(
        self, handler: HandlerFn | None = None, *, validator: ValidatorFn | None = None
    ) -> HandlerFn | Decorator:
        """Run a function before a realtime client connects."""
        return self._trigger(TriggerKind.BEFORE_CONNECT, None, handler, validator)

    def on_live_query_event(
        self, handler: HandlerFn | None = None
    ) -> HandlerFn | Decorator:
        """Observe live query server events (connect, subscribe, errors)."""

        def register(fn: HandlerFn) -> HandlerFn:
            self.registry.register_live_query_handler(self.tenant_id, fn)
            return fn

        if handler is None:
            return register
        return register(handler)

    # -------------------------------------------------------------------------
    # Functions and jobs
    # -------------------------------------------------------------------------

    def define(
        self,
        name: str,
        handler: HandlerFn | None = None,
        *,
        validator: ValidatorFn | None = None,
    ) -> HandlerFn | Decorator:
        """Define a cloud function callable by name."""

        def register(fn: HandlerFn) -> HandlerFn:
            self.registry.register_function(self.tenant_id, name, fn, validator)
            return fn

        if handler is None:
            return register
        return register(handler)

    def job(self, name: str, handler: HandlerFn | None = None) -> HandlerFn | Decorator:
        """Define a background job callable by name."""

        def register(fn: HandlerFn) -> HandlerFn:
            self.registry.register_job(self.tenant_id, name, fn)
            return fn

        if handler is None:
            return register
        return register(handler)

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def remove_all_hooks(self) -> None:
        """Remove every hook of every tenant in the registry.

        Not scoped to this facade's tenant. Meant for test isolation; do not
        call it in a multi-tenant production process. Use
        ``HookRuntime.teardown`` to clear a single tenant.
        """
        self.registry.unregister_all()

    def use_master_key(self) -> None:
        """Deprecated, has no effect. Pass the master key explicitly instead."""
        warnings.warn(
            "use_master_key() is deprecated and has no effect; "
            "pass the master key explicitly on each request.",
            DeprecationWarning,
            stacklevel=2,
        )
