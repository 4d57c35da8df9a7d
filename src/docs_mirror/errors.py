"""Exception taxonomy for docs-mirror.

Resource-level problems (``ContentRejectedError``, ``ConversionError``) are
caught by the sync engine and counted as failed resources.
``TransportError`` means a whole job could not establish its source and is
propagated to the job runner.  ``ConfigError`` is raised for invalid
configuration before any job starts.
"""


class DocsMirrorError(Exception):
    """Base class for all docs-mirror errors."""


class ConfigError(DocsMirrorError):
    """Configuration is missing or invalid."""


class TransportError(DocsMirrorError):
    """The source snapshot for a job could not be established."""


class ContentRejectedError(DocsMirrorError):
    """Fetched content does not look like the expected document."""


class ConversionError(DocsMirrorError):
    """Fetched content could not be converted to markdown."""
