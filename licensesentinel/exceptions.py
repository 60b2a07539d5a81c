"""Custom exceptions for licensesentinel."""


class LicenseSentinelError(Exception):
    """Base exception for all licensesentinel errors."""


class ConfigError(LicenseSentinelError):
    """Raised when the configuration file cannot be loaded or validated."""


class SourceError(LicenseSentinelError):
    """Raised when a source cannot enumerate dependencies at all.

    Fatal to the one source/application pair, never to the whole run.
    """


class ShellError(SourceError):
    """Raised when an external command required by a source fails."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"command {' '.join(cmd)!r} failed (exit {returncode}): {stderr.strip()}"
        )


class DependencyResolutionError(LicenseSentinelError):
    """Raised while resolving a single dependency entry.

    Sources catch it and store the message on the dependency's ``errors``.
    """


class RecordError(LicenseSentinelError):
    """Base exception for cache record I/O."""


class RecordNotFound(RecordError):
    """Raised when a cache record file does not exist."""


class RecordParseError(RecordError):
    """Raised when a cache record file is malformed."""


class CacheWriteError(RecordError):
    """Raised when a cache record cannot be written."""
