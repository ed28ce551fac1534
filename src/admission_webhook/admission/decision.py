"""
Decision function contract and registry.

A decision function receives the AdmissionRequest and returns the (possibly
empty) ordered patch operations to apply, or raises DecisionError to deny the
request. Functions must finish synchronously and be safe to call from
several worker threads at once; the webhook shares one registered set across
all concurrent requests.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from admission_webhook.errors import ConfigurationError
from admission_webhook.models import AdmissionRequest, PatchOperation

logger = logging.getLogger(__name__)


class AdmitFunc(Protocol):
    """Callable deciding on a single admission request."""

    def __call__(self, request: AdmissionRequest) -> Sequence[PatchOperation]: ...


F = TypeVar("F", bound=AdmitFunc)


@dataclass(frozen=True)
class Decision:
    """A named decision function, as registered."""

    name: str
    func: AdmitFunc

    def __call__(self, request: AdmissionRequest) -> Sequence[PatchOperation]:
        return self.func(request)


class DecisionRegistry:
    """
    Ordered collection of decision functions, built once at startup.

    Functions run in registration order. After ``freeze()`` the set is fixed
    and any further registration is a configuration error.
    """

    def __init__(self) -> None:
        self._decisions: list[Decision] = []
        self._frozen = False

    def add(self, name: str, func: AdmitFunc) -> None:
        """
        Register a decision function under ``name``.

        Raises:
            ConfigurationError: If the registry is frozen or the name is taken
        """
        if self._frozen:
            raise ConfigurationError(
                f"cannot register decision function {name!r}: registry is frozen",
                user_action="Register all decision functions before starting the server",
            )
        if name in self.names:
            raise ConfigurationError(
                f"decision function {name!r} is already registered"
            )
        logger.info(f"Registering decision function {name}")
        self._decisions.append(Decision(name=name, func=func))

    def register(self, name: str) -> Callable[[F], F]:
        """Decorator form of :meth:`add`."""

        def decorator(func: F) -> F:
            self.add(name, func)
            return func

        return decorator

    def freeze(self) -> tuple[Decision, ...]:
        """Fix the registered set and return it in registration order."""
        self._frozen = True
        return tuple(self._decisions)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def names(self) -> list[str]:
        return [decision.name for decision in self._decisions]

    def __len__(self) -> int:
        return len(self._decisions)
