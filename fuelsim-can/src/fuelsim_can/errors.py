"""Exception types for fuelsim-can.

Exception hierarchy:
    FuelsimError (base)
    +-- BusUnavailableError: Emulation started without a bus to send on
    +-- ConfigError: Invalid emulator or CAN configuration
"""


class FuelsimError(Exception):
    """Base exception for all fuelsim errors.

    Catch this to handle any emulator-specific error.
    """


class BusUnavailableError(FuelsimError):
    """Raised when emulation is started without a frame sender.

    This is a precondition violation rather than a runtime fault: nothing is
    started and the caller is expected to fix the call site.
    """


class ConfigError(FuelsimError, ValueError):
    """Raised for invalid configuration.

    This includes out-of-range identifiers, non-positive intervals or channel
    counts, and malformed YAML configuration files.
    """
