"""Process exit codes for configuration-level failures.

Workflow failures carry their own codes (see
``autorelease.services.release.model.WorkflowOutcome``); these cover what
happens before the workflow starts.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes used by the CLI outside of a workflow run.

    - 0: Success
    - 1: User error (bad option, confirmation declined)
    - 2: Environment error (invalid config file, not a git repository)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
