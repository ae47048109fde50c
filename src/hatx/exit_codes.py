"""Numeric process exit codes used by the ``hatx`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~hatx.exceptions.HatxError` subclass.  Shell scripts
can inspect the exit code to tell a bad argument from a server outage
without parsing stderr.

Example::

    $ hatx bead get ""
    $ echo $?
    2   # EXIT_INVALID_INPUT -- the allele was empty
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_INPUT = 2
"""A required identifier was missing, blank, or an identifier list was empty."""

EXIT_CONFIG_ERROR = 3
"""Mandatory configuration (the base URL) was missing or malformed."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CLIENT_ERROR = 7
"""The remote API rejected the request with an HTTP 4xx status other than 404."""

EXIT_RESPONSE_ERROR = 8
"""The remote API answered with a body that could not be decoded or mapped."""
