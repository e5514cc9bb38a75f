"""
LocalStub Errors

Exception hierarchy for the stub engine.

Only MissingURLError can surface from a normal dispatch. PatternError and
ParameterDecodeError are raised in strict mode only; the default engine
treats those conditions as "no match" / "no parameters".
"""


class StubError(Exception):
    """Base class for all LocalStub errors."""


class MissingURLError(StubError):
    """An intercepted request carried no URL."""


class PatternError(StubError):
    """A route pattern is not a valid regular expression (strict mode)."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid route pattern {pattern!r}: {reason}")


class ParameterDecodeError(StubError):
    """A query or fragment string could not be percent-decoded (strict mode)."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Cannot decode parameters {raw!r}: {reason}")
