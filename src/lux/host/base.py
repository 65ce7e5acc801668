"""Abstract host channels and the brightness error taxonomy."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from lux.constants import MAX_BRIGHTNESS, MIN_BRIGHTNESS

# --- Exceptions ---


class BrightnessError(Exception):
    """Base exception for all brightness errors."""


class OutOfRangeError(BrightnessError, ValueError):
    """Raised when a brightness value lies outside [0.0, 1.0]."""

    def __init__(
        self,
        value: float,
        min_value: float = MIN_BRIGHTNESS,
        max_value: float = MAX_BRIGHTNESS,
    ) -> None:
        self.value = value
        self.min_value = min_value
        self.max_value = max_value
        super().__init__(
            f"Invalid brightness value: {value} "
            f"(must be between {min_value} and {max_value} inclusive)"
        )


class HostError(BrightnessError):
    """Coded failure reported by the host capability."""

    code: int = 0
    default_message: str = "Unexpected host error"

    def __init__(self, message: str | None = None, code: int | None = None) -> None:
        if code is not None:
            self.code = code
        self.message = message or self.default_message
        super().__init__(f"[{self.code}] {self.message}")

    @classmethod
    def from_code(cls, code: int | str, message: str | None = None) -> "HostError":
        """Build the error subclass matching a host error code.

        Args:
            code: Error code as reported by the host (int or numeric string).
            message: Optional host message; the code's default is used if empty.

        Returns:
            An instance of the matching subclass, or a plain HostError for
            codes outside the known table.
        """
        code = int(code)
        for error_cls in _CODED_ERRORS:
            if error_cls.code == code:
                return error_cls(message)
        return HostError(message, code=code)


class ChangeVerificationError(HostError):
    """The host read back a different value than the one requested."""

    code = -1
    default_message = "Unable to change screen brightness"


class NullParameterError(HostError):
    """The host could not decode the brightness parameter."""

    code = -2
    default_message = "Unexpected error on null brightness"


class MissingValueError(HostError):
    """The host returned no value where one was expected."""

    code = -9
    default_message = "Brightness value returns null"


class ActivityBindingError(HostError):
    """The host-side display context is unavailable."""

    code = -10
    default_message = "Unexpected error on activity binding"


class SettingLookupError(HostError):
    """The host-side storage for the brightness value could not be located."""

    code = -11
    default_message = "Could not find system setting screen brightness value"


_CODED_ERRORS: tuple[type[HostError], ...] = (
    ChangeVerificationError,
    NullParameterError,
    MissingValueError,
    ActivityBindingError,
    SettingLookupError,
)


# --- Abstract Base Classes ---


class BrightnessMethodChannel(ABC):
    """Outbound request/response channel to the host capability."""

    name: str

    @abstractmethod
    async def invoke_method(self, method: str, arguments: dict | None = None) -> Any:
        """Invoke a named host method.

        Args:
            method: One of the method names in ``lux.constants``.
            arguments: Optional mapping of named arguments.

        Returns:
            The raw host result (a number, a bool, or None).

        Raises:
            HostError: On a coded host failure.
            NotImplementedError: When the host does not know the method.
        """


class BrightnessEventChannel(ABC):
    """Inbound broadcast channel of brightness-change events."""

    @abstractmethod
    def receive_broadcast_stream(self) -> AsyncIterator[Any]:
        """Subscribe to the host and return its raw event payloads.

        Every call creates a new host-level subscription.
        """
