"""Hatchet workflow definitions.

- ExpireStaleSessionsWorkflow: Expires ACTIVE sessions past their lifetime
"""

from scrum_poker.jobs.workflows.session_expiry import (
    ExpireSessionsInput,
    ExpireSessionsOutput,
    ExpireStaleSessionsWorkflow,
    register_workflow,
)

__all__ = [
    "ExpireStaleSessionsWorkflow",
    "ExpireSessionsInput",
    "ExpireSessionsOutput",
    "register_workflow",
]
