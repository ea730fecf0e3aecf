"""
Typed exception hierarchy for the document totals engine.

===============================================================================
SCOPE
===============================================================================

The calculators themselves raise nothing: malformed numeric input degrades
to a safe default (see docform_kernel.domain.coercion). Exceptions exist only
at the seams around the engine:

  - Loading configuration (missing file, malformed YAML, bad values)
  - Driving a document session (unknown document type, bad line index,
    unknown field name)
  - Using a sync controller after it has been closed

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DocformError (base)
    |
    +-- ConfigurationError
    |   +-- ConfigNotFoundError
    |   +-- InvalidConfigError
    |
    +-- DocumentError
    |   +-- UnknownDocumentTypeError
    |   +-- LineNotFoundError
    |   +-- UnknownFieldError
    |
    +-- SyncError
        +-- ControllerClosedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Config          | CONFIG_NOT_FOUND            | Config file path does not exist
                | INVALID_CONFIG              | YAML parsed but values are invalid
----------------|-----------------------------|-----------------------------------------
Document        | UNKNOWN_DOCUMENT_TYPE       | No profile for the document type
                | LINE_NOT_FOUND              | Line index out of range
                | UNKNOWN_FIELD               | Edit names a field the line/header lacks
----------------|-----------------------------|-----------------------------------------
Sync            | CONTROLLER_CLOSED           | Controller used after close()

Every exception carries a class-level ``code`` and stores its context as
attributes, so callers catch by type and log structured fields.
"""


class DocformError(Exception):
    """
    Base exception for all docform errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "DOCFORM_ERROR"


# Configuration exceptions


class ConfigurationError(DocformError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class ConfigNotFoundError(ConfigurationError):
    """Configuration file does not exist."""

    code: str = "CONFIG_NOT_FOUND"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Configuration file not found: {path}")


class InvalidConfigError(ConfigurationError):
    """Configuration was parsed but contains invalid values."""

    code: str = "INVALID_CONFIG"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for {key!r}: {reason}")


# Document session exceptions


class DocumentError(DocformError):
    """Base exception for document session errors."""

    code: str = "DOCUMENT_ERROR"


class UnknownDocumentTypeError(DocumentError):
    """No profile is configured for the document type."""

    code: str = "UNKNOWN_DOCUMENT_TYPE"

    def __init__(self, document_type: str, known_types: list[str]):
        self.document_type = document_type
        self.known_types = known_types
        super().__init__(
            f"Unknown document type {document_type!r}; "
            f"expected one of {', '.join(known_types)}"
        )


class LineNotFoundError(DocumentError):
    """Line index does not exist in the document."""

    code: str = "LINE_NOT_FOUND"

    def __init__(self, index: int, line_count: int):
        self.index = index
        self.line_count = line_count
        super().__init__(
            f"Line {index} not found; document has {line_count} line(s)"
        )


class UnknownFieldError(DocumentError):
    """An edit named a field the line or header does not have."""

    code: str = "UNKNOWN_FIELD"

    def __init__(self, field_name: str, scope: str):
        self.field_name = field_name
        self.scope = scope
        super().__init__(f"Unknown {scope} field: {field_name}")


# Sync controller exceptions


class SyncError(DocformError):
    """Base exception for reactive sync errors."""

    code: str = "SYNC_ERROR"


class ControllerClosedError(SyncError):
    """The sync controller was used after close()."""

    code: str = "CONTROLLER_CLOSED"

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Sync controller for document {document_id} is closed")
