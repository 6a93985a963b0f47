"""Data models for CLI operations."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for the publish command.

    - SUCCESS (0): Every page published
    - GENERAL_ERROR (1): General error (config issues, validation failures)
    - PUBLISH_FAILURES (2): One or more pages failed to publish
    - AUTH_ERROR (3): Authentication or authorization failure
    - NETWORK_ERROR (4): Network connectivity or API availability issues
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    PUBLISH_FAILURES = 2
    AUTH_ERROR = 3
    NETWORK_ERROR = 4
