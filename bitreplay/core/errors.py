"""
Exception types for the bit transformation engine.
"""


class BitReplayError(Exception):
    """Base class for engine errors."""
    pass


class InvalidBitsError(BitReplayError):
    """Raised when a buffer contains anything other than '0' and '1'."""
    pass


class RangeError(BitReplayError):
    """Raised when a bit range falls outside the buffer."""
    pass


class RegistryError(BitReplayError):
    """Raised when an operation definition fails startup validation."""
    pass


class UnknownOperationError(BitReplayError):
    """Raised when an operation id is not registered."""
    pass


class UnknownMetricError(BitReplayError):
    """Raised when a metric id is not registered."""
    pass


class OperationExecutionError(BitReplayError):
    """Raised when an operation implementation rejects its input."""
    pass


class UnknownMacroError(BitReplayError):
    """Raised when APPLY names a macro that was never defined."""
    pass


class MacroCycleError(BitReplayError):
    """Raised when macro expansion re-enters a macro already on the call stack."""
    pass


class ScriptError(BitReplayError):
    """Raised when a user script is rejected or fails inside the sandbox."""
    pass


class ParseError(BitReplayError):
    """Raised internally when a command line cannot be parsed."""
    pass



class ResultStoreError(BitReplayError):
    """Raised when result store operations fail."""
    pass
