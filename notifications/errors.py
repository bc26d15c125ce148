from __future__ import annotations


class WorkflowError(Exception):
    """Base for every failure raised out of NotificationsProcessor.process."""


class StoreError(WorkflowError):
    """A store read failed (connectivity, query error). The event should be redriven."""

    def __init__(self, operation: str, message: str = ""):
        super().__init__(f"store_error:{operation}" + (f": {message}" if message else ""))
        self.operation = operation


class WorkflowCancelled(WorkflowError):
    def __init__(self, stage: str = ""):
        super().__init__(f"workflow_cancelled:{stage}" if stage else "workflow_cancelled")
        self.stage = stage
