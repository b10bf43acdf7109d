class IdleMMOError(Exception):
    pass


class ConfigurationError(IdleMMOError):
    pass


class TransportError(IdleMMOError):
    pass


class CircuitOpenError(TransportError):
    pass


class ParseError(IdleMMOError):
    def __init__(self, rule: str, message: str | None = None) -> None:
        self.rule = rule
        super().__init__(message or f"Failed to find value for key: {rule}")


class DecodeError(IdleMMOError):
    pass


class HeaderError(IdleMMOError):
    pass


class NumericParseError(IdleMMOError):
    pass


class StoreError(IdleMMOError):
    pass


class SessionStateError(IdleMMOError):
    pass


class UnsupportedFilterError(IdleMMOError):
    pass
