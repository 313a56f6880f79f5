# localcoder/exceptions.py


class LocalCoderError(Exception):
    """Base class for errors raised by local-coder."""


class ConfigError(LocalCoderError):
    """Configuration could not be loaded or holds an invalid value."""


class ModelTransportError(LocalCoderError):
    """The model server could not be reached or answered with an error."""

    def __init__(self, message: str, model: str = ""):
        super().__init__(message)
        self.model = model


class IterationLimitExceededError(LocalCoderError):
    """The model kept requesting tools past the configured round limit."""

    def __init__(self, iterations: int):
        super().__init__(f"Tool iteration limit exceeded after {iterations} rounds.")
        self.iterations = iterations


class ConfirmationAborted(LocalCoderError):
    """The user interrupted a confirmation prompt (Ctrl-C / Ctrl-D)."""

    def __init__(self, message: str = "Confirmation aborted by user.", partial_results=None):
        super().__init__(message)
        self.partial_results = list(partial_results or [])


class AuxiliaryToolError(LocalCoderError):
    """An auxiliary tool server failed to start, list or run a tool."""
