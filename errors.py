class WidgetError(Exception):
    """Base class for errors raised by the location/weather widget."""


# Missing or falsy required input fields; surfaced to callers as HTTP 400.
class ValidationError(WidgetError):
    def __init__(self, message, missing=None):
        super().__init__(message)
        self.missing = list(missing or [])


# The location file is missing, unreadable, unparsable or unwritable.
class StorageError(WidgetError):
    pass


# Non-success status, transport failure or unexpected body from a provider.
class UpstreamError(WidgetError):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(WidgetError):
    pass
