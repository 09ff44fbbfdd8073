"""Exception hierarchy for sdkforge.

All exceptions inherit from :class:`SdkForgeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`sdkforge.exit_codes`.
The CLI entry point in :func:`sdkforge.app.main` catches ``SdkForgeError``
and exits with the appropriate code.

Subclass hierarchy::

    SdkForgeError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 3)
    +-- ParseError                 (exit 4)
    +-- GenerationError            (exit 5)
    |   +-- PathCollisionError     (exit 5)
    +-- InvalidAttributeTypeError  (exit 6)
    +-- AttributeCollisionError    (exit 6)
    +-- OutputExistsError          (exit 7)
"""

from __future__ import annotations

from sdkforge.exit_codes import (
    EXIT_ATTRIBUTE_TYPE_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_OUTPUT_EXISTS,
    EXIT_PARSE_ERROR,
)


class SdkForgeError(Exception):
    """Base exception for all sdkforge errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`sdkforge.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SdkForgeError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SdkForgeError):
    """Raised when the generator configuration is missing required keys, unreadable or invalid."""

    exit_code = EXIT_CONFIG_ERROR


class ParseError(SdkForgeError):
    """Raised when a specification document is malformed or unreadable for its format."""

    exit_code = EXIT_PARSE_ERROR


class GenerationError(SdkForgeError):
    """Raised when the code artifact set cannot be built consistently."""

    exit_code = EXIT_GENERATION_ERROR


class PathCollisionError(GenerationError):
    """Raised when two artifacts share an identity or resolve to the same output file.

    Args:
        first: Display name of the first artifact.
        second: Display name of the second artifact.
        path: The contested output path.
    """

    def __init__(self, first: str, second: str, path: str):
        super().__init__(f"Artifacts {first} and {second} both resolve to {path}")
        self.first = first
        self.second = second
        self.path = path


class InvalidAttributeTypeError(SdkForgeError):
    """Raised when a type's field declaration is absent, ambiguous or references an unknown type."""

    exit_code = EXIT_ATTRIBUTE_TYPE_ERROR


class AttributeCollisionError(SdkForgeError):
    """Raised when an ``additionalProperties`` entry shadows a declared field."""

    exit_code = EXIT_ATTRIBUTE_TYPE_ERROR


class OutputExistsError(SdkForgeError):
    """Raised when output files already exist and overwriting was not forced."""

    exit_code = EXIT_OUTPUT_EXISTS
