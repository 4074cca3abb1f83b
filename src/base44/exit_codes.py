"""Numeric process exit codes used by the ``base44`` command-line tool.

Each constant maps to an error category and is referenced by the
corresponding :class:`~base44.exceptions.Base44Error` subclass. Shell
scripts can branch on the exit code without parsing stderr.

Example::

    $ base44 entities get Task 123
    $ echo $?
    4   # EXIT_NOT_FOUND -- the backend answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also used for configuration problems)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (bad JSON, missing values)."""

EXIT_AUTH_FAILURE = 3
"""No token is available, or the backend rejected it (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested entity or endpoint does not exist (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The backend returned an HTTP 5xx error."""

EXIT_CONNECTION_ERROR = 6
"""The backend could not be reached (DNS failure, refused connection, timeout)."""

EXIT_CANCELLED = 130
"""The user interrupted the command with Ctrl-C."""
