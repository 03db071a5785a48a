"""Error taxonomy for the trigger system.

Two families:
- RegistrationError: misuse detected while registering a hook (raised immediately)
- TriggerError: failure while dispatching a hook (carried on DispatchResult)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cloudhooks.triggers.types import TriggerKind


class CloudHooksError(Exception):
    """Base class for all cloudhooks errors."""


class RegistrationError(CloudHooksError, ValueError):
    """A hook was registered incorrectly (bad class reference, non-callable handler)."""


class DuplicateRegistrationError(RegistrationError):
    """Strict mode: a key that already has a handler was registered again."""


class TriggerError(CloudHooksError):
    """A hook failed while being dispatched.

    Attributes:
        kind: The trigger kind, or None for functions and jobs
        class_name: Target class for class-scoped kinds
        name: Function or job name
        tenant_id: Tenant the dispatch ran for
    """

    def __init__(
        self,
        message: str,
        *,
        kind: TriggerKind | None = None,
        class_name: str | None = None,
        name: str | None = None,
        tenant_id: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.class_name = class_name
        self.name = name
        self.tenant_id = tenant_id

    @property
    def target(self) -> str:
        """Human-readable label for the hook that failed."""
        if self.name is not None:
            return self.name
        label = self.kind.value if self.kind is not None else "trigger"
        if self.class_name:
            return f"{label}:{self.class_name}"
        return label

    def to_dict(self) -> dict[str, str | None]:
        return {
            "message": self.message,
            "kind": self.kind.value if self.kind is not None else None,
            "className": self.class_name,
            "name": self.name,
            "tenantId": self.tenant_id,
        }


class ValidationFailed(TriggerError):
    """The validator rejected the request; the handler was not invoked."""


class HandlerFailed(TriggerError):
    """The handler raised. The original exception is chained as __cause__."""
