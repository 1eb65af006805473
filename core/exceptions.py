"""Error taxonomy shared by the service layer.

Every error is an ``HTTPException`` so services can raise it directly and the
router layer needs no translation table.
"""
from __future__ import annotations
from typing import Optional, Sequence

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "access denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str = "conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidHierarchyError(HTTPException):
    """A proposed parent edge would break the tree invariant."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class SelfReferenceError(InvalidHierarchyError):
    pass


class SelfManagementError(SelfReferenceError):
    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"employee {employee_id} cannot be their own manager")


class SelfParentingError(SelfReferenceError):
    def __init__(self, team_id: str):
        self.team_id = team_id
        super().__init__(f"team {team_id} cannot be its own parent")


class CycleError(InvalidHierarchyError):
    def __init__(self, path: Sequence[str], noun: str = "manager"):
        self.path = list(path)
        chain = " -> ".join(self.path)
        super().__init__(f"{noun} assignment would create a cycle: {chain}")


class DepthExceededError(InvalidHierarchyError):
    def __init__(self, node_id: str, max_depth: int, noun: str = "manager"):
        self.node_id = node_id
        self.max_depth = max_depth
        super().__init__(
            f"{noun} chain exceeds {max_depth} levels (stopped at {node_id})"
        )


class ParentNotFoundError(InvalidHierarchyError):
    def __init__(self, node_id: str, noun: str = "parent"):
        self.node_id = node_id
        super().__init__(f"{noun} {node_id} not found")


class ManagerNotFoundError(ParentNotFoundError):
    def __init__(self, node_id: str, noun: str = "manager"):
        super().__init__(node_id, noun)


class ParentTeamNotFoundError(ParentNotFoundError):
    def __init__(self, node_id: str, noun: str = "parent team"):
        super().__init__(node_id, noun)


class HierarchyIntegrityError(HTTPException):
    """Stored data violates the tree invariant (seen while building a view)."""

    def __init__(self, detail: str, node_id: Optional[str] = None):
        self.node_id = node_id
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
