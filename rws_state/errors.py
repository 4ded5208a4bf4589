from typing import Optional, Sequence


class RWSStateError(Exception):
    pass


class IncompleteResponse(RWSStateError, KeyError):
    """A field required to build a record was absent from the response."""

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"{entity}: required field '{field}' missing from response")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class InvalidFieldValue(RWSStateError, ValueError):
    def __init__(self, entity: str, field: str, raw):
        self.entity = entity
        self.field = field
        self.raw = raw
        super().__init__(f"{entity}: field '{field}' has unusable value {raw!r}")


class TypeMismatch(RWSStateError, TypeError):
    """A signal value was read (or built) as the wrong discriminant."""

    def __init__(self, expected, actual, name: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        self.name = name
        target = f"signal '{name}'" if name is not None else "signal value"
        super().__init__(f"{target} is {actual.name.lower()}, not {expected.name.lower()}")


class PartialAggregateFailure(RWSStateError):
    """One or more constituent queries of an aggregate snapshot failed."""

    def __init__(self, aggregate: str, failed_parts: Sequence[str]):
        self.aggregate = aggregate
        self.failed_parts = tuple(failed_parts)
        super().__init__(f"{aggregate} not produced; failed parts: {', '.join(self.failed_parts)}")


class RefreshTimeout(RWSStateError, TimeoutError):
    def __init__(self, kind: str, timeout_s: float):
        self.kind = kind
        self.timeout_s = timeout_s
        super().__init__(f"refresh of {kind} exceeded {timeout_s:.3f}s")


class ResponseParseError(RWSStateError, ValueError):
    pass
