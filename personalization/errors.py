"""Engine exceptions."""

from typing import Optional


class ProfileStoreError(RuntimeError):
    """Profile persistence failed (load or save). The in-process profile was left unchanged."""

    def __init__(self, viewer_id: str, operation: str, cause: Optional[BaseException] = None):
        self.viewer_id = viewer_id
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Profile {operation} failed for viewer {viewer_id!r}{detail}")
