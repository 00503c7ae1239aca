"""Exception classes for the runner sizer."""


class RunnerSizerError(Exception):
    """Base exception for runner sizer operations."""

    pass


class DecodeError(RunnerSizerError):
    """A shared configuration token could not be decoded."""

    def __init__(self, message: str):
        super().__init__(f"Invalid configuration token: {message}")


class ShortenError(RunnerSizerError):
    """The link shortener did not return a usable URL."""

    pass


class ExportError(RunnerSizerError):
    """A report could not be rendered."""

    def __init__(self, message: str, fmt: str):
        self.fmt = fmt
        super().__init__(f"{fmt} export failed: {message}")
