"""Trigger system types for cloudhooks.

Defines the core data structures used to key and store hooks:
- TriggerKind: the closed set of lifecycle events a hook can attach to
- ClassRef: a target class given by name or by descriptor
- TriggerKey: the (tenant, kind, class) identity a registration is stored under
- Registration / FunctionRegistration / JobRegistration: stored entries
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cloudhooks.triggers.errors import RegistrationError

# Handler signature: (request) -> result, sync or async
HandlerFn = Callable[[Any], Any]
# Validator signature: (request) -> bool | None, raising or returning False rejects
ValidatorFn = Callable[[Any], Any]


class TriggerScope(Enum):
    """What a trigger kind is attached to."""

    CLASS = "class"  # Requires a target class name
    FILE = "file"  # File pipeline, no class
    CONNECTION = "connection"  # Realtime connections, no class


class TriggerKind(Enum):
    """Lifecycle events a hook can be registered for."""

    BEFORE_SAVE = "beforeSave"
    AFTER_SAVE = "afterSave"
    BEFORE_DELETE = "beforeDelete"
    AFTER_DELETE = "afterDelete"
    BEFORE_FIND = "beforeFind"
    AFTER_FIND = "afterFind"
    BEFORE_LOGIN = "beforeLogin"
    AFTER_LOGIN = "afterLogin"
    AFTER_LOGOUT = "afterLogout"
    BEFORE_SUBSCRIBE = "beforeSubscribe"
    BEFORE_SAVE_FILE = "beforeSaveFile"
    AFTER_SAVE_FILE = "afterSaveFile"
    BEFORE_DELETE_FILE = "beforeDeleteFile"
    AFTER_DELETE_FILE = "afterDeleteFile"
    BEFORE_CONNECT = "beforeConnect"

    @property
    def scope(self) -> TriggerScope:
        if self in _FILE_KINDS:
            return TriggerScope.FILE
        if self is TriggerKind.BEFORE_CONNECT:
            return TriggerScope.CONNECTION
        return TriggerScope.CLASS

    @property
    def is_class_scoped(self) -> bool:
        return self.scope is TriggerScope.CLASS

    @property
    def is_before(self) -> bool:
        return self.value.startswith("before")

    @property
    def default_class(self) -> str | None:
        """Class used when a login/logout hook is registered without one."""
        return _DEFAULT_CLASSES.get(self)


_FILE_KINDS = frozenset(
    {
        TriggerKind.BEFORE_SAVE_FILE,
        TriggerKind.AFTER_SAVE_FILE,
        TriggerKind.BEFORE_DELETE_FILE,
        TriggerKind.AFTER_DELETE_FILE,
    }
)

_DEFAULT_CLASSES = {
    TriggerKind.BEFORE_LOGIN: "_User",
    TriggerKind.AFTER_LOGIN: "_User",
    TriggerKind.AFTER_LOGOUT: "_Session",
}


def parse_kind(value: TriggerKind | str) -> TriggerKind:
    """Resolve a TriggerKind from an enum member, wire name, or member name.

    Raises:
        RegistrationError: If the value names no trigger kind
    """
    if isinstance(value, TriggerKind):
        return value
    try:
        return TriggerKind(value)
    except ValueError:
        pass
    try:
        return TriggerKind[str(value).upper()]
    except KeyError:
        raise RegistrationError(f"Unknown trigger kind: {value!r}") from None


# =============================================================================
# Class references
# =============================================================================


@dataclass(frozen=True)
class ByName:
    """A target class given as a literal class name."""

    name: str

    @property
    def class_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class ByDescriptor:
    """A target class given as a descriptor object (e.g. a model class).

    The descriptor's declared ``class_name`` (or ``className``) is used.
    """

    descriptor: Any

    @property
    def class_name(self) -> str:
        return declared_class_name(self.descriptor)


ClassRef = ByName | ByDescriptor


_CLASS_NAME_ATTRS = ("class_name", "className")


def declared_class_name(descriptor: Any) -> str:
    for attr in _CLASS_NAME_ATTRS:
        name = getattr(descriptor, attr, None)
        if isinstance(name, str) and name:
            return name
        if isinstance(name, property):
            raise RegistrationError(
                f"{descriptor!r} declares '{attr}' as a property; "
                "the class name must be a plain class attribute"
            )
    raise RegistrationError(
        f"{descriptor!r} does not declare a class name "
        "(expected a 'class_name' attribute)"
    )


def names_class(value: Any) -> bool:
    """True when value is meant as a class reference rather than a handler.

    Descriptor classes are callable, so check this before callable().
    """
    if isinstance(value, (str, ByName, ByDescriptor)):
        return True
    return any(getattr(value, attr, None) is not None for attr in _CLASS_NAME_ATTRS)


def class_ref(value: Any) -> ClassRef:
    """Build a ClassRef from a raw value.

    Strings become ByName; objects declaring a class name become ByDescriptor.

    Raises:
        RegistrationError: If value is missing or cannot name a class
    """
    if isinstance(value, (ByName, ByDescriptor)):
        return value
    if isinstance(value, str):
        if not value:
            raise RegistrationError("Class name must not be empty")
        return ByName(value)
    if value is None:
        raise RegistrationError("A class name or class descriptor is required")
    # Probe once so misuse surfaces at registration time
    declared_class_name(value)
    return ByDescriptor(value)


def resolve_class_name(value: Any) -> str:
    """Normalize a string or descriptor to its class name."""
    return class_ref(value).class_name


# =============================================================================
# Keys and registrations
# =============================================================================


@dataclass(frozen=True)
class TriggerKey:
    """Identity a trigger registration is stored under.

    Attributes:
        tenant_id: Owning tenant (application id)
        kind: Lifecycle event
        class_name: Target class for class-scoped kinds, None otherwise
    """

    tenant_id: str
    kind: TriggerKind
    class_name: str | None = None

    @classmethod
    def build(
        cls,
        tenant_id: str,
        kind: TriggerKind | str,
        target: Any = None,
    ) -> TriggerKey:
        """Build a key, applying the scope rules of the kind.

        Class-scoped kinds require a target (login/logout kinds fall back to
        their default class). File and connection kinds must not have one.

        Raises:
            RegistrationError: If the target does not fit the kind
        """
        if not tenant_id:
            raise RegistrationError("A tenant id is required")
        kind = parse_kind(kind)
        if kind.is_class_scoped:
            if target is None and kind.default_class is not None:
                return cls(tenant_id, kind, kind.default_class)
            return cls(tenant_id, kind, resolve_class_name(target))
        if target is not None:
            raise RegistrationError(
                f"{kind.value} triggers are not class-scoped; got class {target!r}"
            )
        return cls(tenant_id, kind, None)

    def __str__(self) -> str:
        if self.class_name is None:
            return f"{self.tenant_id}/{self.kind.value}"
        return f"{self.tenant_id}/{self.kind.value}/{self.class_name}"


def ensure_callable(fn: Any, what: str) -> None:
    if not callable(fn):
        raise RegistrationError(f"{what} must be callable, got {type(fn).__name__}")


@dataclass(frozen=True)
class Registration:
    """A trigger handler (and optional validator) stored under a key."""

    key: TriggerKey
    handler: HandlerFn
    validator: ValidatorFn | None = None


@dataclass(frozen=True)
class FunctionRegistration:
    """A cloud function stored under (tenant, name)."""

    tenant_id: str
    name: str
    handler: HandlerFn
    validator: ValidatorFn | None = None


@dataclass(frozen=True)
class JobRegistration:
    """A background job stored under (tenant, name)."""

    tenant_id: str
    name: str
    handler: HandlerFn
