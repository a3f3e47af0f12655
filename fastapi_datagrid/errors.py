# fastapi_datagrid/errors.py


class ConfigurationError(ValueError):
    """Raised when a data grid is set up with invalid configuration.

    Only developer-supplied setup raises this. Malformed request parameters
    are normalized to defaults instead.
    """
