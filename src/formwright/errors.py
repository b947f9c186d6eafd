"""Exception definitions for Formwright application"""


class FormwrightException(Exception):
    """Base exception for all Formwright application errors.

    All custom exceptions in the Formwright application inherit from this class.
    Use this as a catch-all for Formwright-specific errors when you don't need
    to handle specific exception types.
    """

    pass


class ConfigException(FormwrightException):
    """Raised when configuration validation or loading fails.

    Use this exception when:
    - The configuration file cannot be found
    - The TOML syntax is invalid
    - Configuration validation fails (missing required fields, invalid values)
    - Type conversion of config values fails
    """

    pass


class ExpressionError(FormwrightException):
    """Raised when a formula cannot be parsed or evaluated.

    Use this exception when:
    - The formula has a syntax error
    - The formula uses a construct outside the allowed arithmetic subset
    - The formula references an unknown field or row
    - Evaluation fails (division by zero, incompatible operand types)
    - Calculated fields depend on each other in a cycle
    """

    pass


class PrefillException(FormwrightException):
    """Raised when an HTTP prefill request fails.

    Callers of the prefill service never see this exception; it is turned
    into a failed PrefillResult after the retries are exhausted.
    """

    pass


class ClientError(PrefillException):
    """Raised when HTTP 4XX client errors occur and should not be retried.

    Use this exception when:
    - HTTP requests return 4xx status codes (400-499)
    - The error indicates a client-side problem (authentication, invalid request, etc.)
    - Retrying the request would not succeed without changes

    This exception is distinct from transient 5xx errors or network issues.
    """

    pass


class SettingsException(FormwrightException):
    """Raised when the app settings store cannot be read or written."""

    pass
