class NodeError(Exception):
    pass


class NodeConfigurationError(NodeError, ValueError):
    pass


class TelemetryNotSelectedError(NodeError):
    def __init__(self, message: str = "Telemetry is not selected!"):
        super().__init__(message)


class IntervalValidationError(NodeError, ValueError):
    """Raised when a metadata-driven interval bound cannot be used.

    ``keys`` lists the metadata keys the error is about, start bound first.
    """

    reason = ""

    def __init__(self, keys: list[str]):
        self.keys = list(keys)
        quoted = " and ".join(f"'{key}'" for key in self.keys)
        if len(self.keys) > 1:
            message = f"Message metadata values: {quoted} {self.plural_reason}"
        else:
            message = f"Message metadata value: {quoted} {self.reason}"
        super().__init__(message)

    @property
    def plural_reason(self) -> str:
        return self.reason


class UndefinedIntervalError(IntervalValidationError):
    reason = "is undefined"

    @property
    def plural_reason(self) -> str:
        return "are undefined"


class InvalidIntervalFormatError(IntervalValidationError):
    reason = "has invalid format"

    @property
    def plural_reason(self) -> str:
        return "have invalid format"


class EncodingError(NodeError, ValueError):
    pass


class StorageError(NodeError):
    pass
