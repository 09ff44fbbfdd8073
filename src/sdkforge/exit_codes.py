"""Numeric process exit codes for the ``sdkforge`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~sdkforge.exceptions.SdkForgeError` subclass.
CI scripts can inspect the exit code to tell a bad config file from a
broken specification without parsing stderr.

Example::

    $ sdkforge generate collection.json
    $ echo $?
    4   # EXIT_PARSE_ERROR -- the collection could not be read
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""The generator configuration is missing required keys or is malformed."""

EXIT_PARSE_ERROR = 4
"""The API specification could not be loaded or parsed."""

EXIT_GENERATION_ERROR = 5
"""Code artifacts could not be built (duplicate classes, colliding paths)."""

EXIT_ATTRIBUTE_TYPE_ERROR = 6
"""A generated type has an unusable field-type declaration."""

EXIT_OUTPUT_EXISTS = 7
"""Output files already exist and ``force`` was not set."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C (128 + SIGINT)."""
