"""Numeric process exit codes used by the ``authpark`` command line.

Each constant maps to a failure category and is referenced by the
corresponding :class:`~authpark.exceptions.AuthparkError` subclass, so
shell wrappers can tell a rejected login from a network failure without
parsing stderr.
"""

EXIT_SUCCESS = 0
"""The request completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""Authentication was required, refused, or cancelled."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API answered with any other HTTP error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
