"""Error taxonomy for docs generation.

Every error names the offending source, path or record so that the
console report is actionable on its own.
"""


class DocsGenError(Exception):
    """Base class for all generation errors."""


class LoadError(DocsGenError):
    """A spec source could not be read, fetched or parsed.

    Fatal to the whole configuration unit.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(f'Loading of api failed for "{source}": {reason}')
        self.source = source
        self.reason = reason


class InvalidIdError(DocsGenError):
    """A record resolved to an empty identifier. Fatal to that record only."""

    def __init__(self, where: str, reason: str = "resolved to an empty id"):
        super().__init__(f"{where} {reason}")
        self.where = where


class ConfigError(DocsGenError):
    """Site or sidebar configuration problem."""


class WriteError(DocsGenError):
    """A generated file could not be written or deleted."""

    def __init__(self, path: str, reason: str, action: str = "write"):
        super().__init__(f'Failed to {action} "{path}": {reason}')
        self.path = path
        self.reason = reason
