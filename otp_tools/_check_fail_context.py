class check_fail:
    """
    Context that swallows the expected error and keeps it in 'exception'.
    If there was no error on leaving the context, or its message does not contain 'match', raise one.
    """

    def __init__(self, exception_type: type[Exception] = Exception, match: str | None = None):
        self.exception_type = exception_type
        self.match = match
        self.exception = None

    def __enter__(self) -> "check_fail":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if isinstance(exc_value, self.exception_type):
            if self.match is not None and self.match not in str(exc_value):
                raise AssertionError(f"Expected '{self.match}' in error message, got '{exc_value}'") from exc_value
            self.exception = exc_value
            return True
        elif exc_value is not None:
            return False
        raise AssertionError(f"This should have raised {self.exception_type.__name__}.")
