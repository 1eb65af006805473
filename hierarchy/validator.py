"""Parent-chain validation for the two self-referencing trees.

Employees point at their manager and teams point at their parent team. Both
are adjacency lists stored as nullable foreign keys, so no storage engine will
stop a write that closes a loop. Every write that sets or changes one of those
columns goes through ``check_chain`` first.
"""
from __future__ import annotations
import logging
from typing import Callable, Iterable, Optional, Type

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.config_loader import settings
from core.exceptions import (
    CycleError,
    DepthExceededError,
    InvalidHierarchyError,
    ManagerNotFoundError,
    ParentNotFoundError,
    ParentTeamNotFoundError,
    SelfManagementError,
    SelfParentingError,
    SelfReferenceError,
)
from employee.models import Employee
from team.models import Team

logger = logging.getLogger(__name__)

# returned by a parent lookup when the node itself does not exist
MISSING = object()

ParentLookup = Callable[[str], object]
ChildLookup = Callable[[list[str]], Iterable[str]]


def subtree_height(root_id: str, children_of: ChildLookup, *, limit: int) -> int:
    """Edges from ``root_id`` down to its deepest descendant.

    Stops counting once ``limit`` is passed; nodes already seen are skipped
    so a stored loop cannot keep the walk going.
    """
    seen = {root_id}
    frontier = [root_id]
    height = 0
    while frontier and height <= limit:
        children = [c for c in children_of(frontier) if c not in seen]
        if not children:
            break
        height += 1
        seen.update(children)
        frontier = children
    return height


def check_chain(
    candidate_id: Optional[str],
    proposed_parent_id: Optional[str],
    parent_of: ParentLookup,
    *,
    max_depth: int,
    children_of: Optional[ChildLookup] = None,
    noun: str = "manager",
    self_error: Type[SelfReferenceError] = SelfManagementError,
    missing_error: Type[ParentNotFoundError] = ManagerNotFoundError,
) -> None:
    """Raise if ``candidate -> proposed_parent`` would break the tree.

    ``candidate_id`` is None for a node that has not been persisted yet; it
    can never match a stored id so only the upward walk applies.
    ``parent_of(node_id)`` returns the node's parent id, None for a root, or
    ``MISSING`` when the node does not exist.
    ``children_of(ids)`` returns the ids of the direct children of ``ids``;
    when given, the candidate's descendants move with it and are counted too.

    The candidate's own new edge counts as the first hop, so after a
    successful check no node under the candidate is more than ``max_depth``
    hops from a root.
    """
    if not proposed_parent_id:
        return
    if candidate_id is not None and candidate_id == proposed_parent_id:
        raise self_error(candidate_id)

    path = [candidate_id] if candidate_id is not None else []
    current = proposed_parent_id
    hops = 1
    while True:
        if current == candidate_id:
            path.append(current)
            raise CycleError(path, noun=noun)
        parent = parent_of(current)
        if parent is MISSING:
            raise missing_error(current)
        path.append(current)
        if parent is None:
            break
        hops += 1
        if hops > max_depth:
            raise DepthExceededError(current, max_depth, noun=noun)
        current = parent

    if candidate_id is None or children_of is None:
        return
    # hops is now the candidate's own depth after the move
    if hops + subtree_height(candidate_id, children_of, limit=max_depth - hops) > max_depth:
        raise DepthExceededError(candidate_id, max_depth, noun=noun)


def _column_lookup(db: Session, model, column: str) -> ParentLookup:
    def lookup(node_id: str):
        row = db.get(model, node_id)
        if row is None:
            return MISSING
        return getattr(row, column)
    return lookup


def _children_lookup(db: Session, model, column: str) -> ChildLookup:
    def lookup(node_ids: list[str]) -> list[str]:
        return list(db.scalars(select(model.id).where(getattr(model, column).in_(node_ids))))
    return lookup


def validate_manager_assignment(
    db: Session,
    employee_id: Optional[str],
    proposed_manager_id: Optional[str],
    *,
    max_depth: Optional[int] = None,
) -> None:
    try:
        check_chain(
            employee_id,
            proposed_manager_id,
            _column_lookup(db, Employee, "manager_id"),
            max_depth=max_depth or settings.MAX_HIERARCHY_DEPTH,
            children_of=_children_lookup(db, Employee, "manager_id"),
        )
    except InvalidHierarchyError as exc:
        logger.warning("rejected manager %s for employee %s: %s", proposed_manager_id, employee_id, exc.detail)
        raise


def validate_parent_team_assignment(
    db: Session,
    team_id: Optional[str],
    proposed_parent_id: Optional[str],
    *,
    max_depth: Optional[int] = None,
) -> None:
    try:
        check_chain(
            team_id,
            proposed_parent_id,
            _column_lookup(db, Team, "parent_team_id"),
            max_depth=max_depth or settings.MAX_HIERARCHY_DEPTH,
            children_of=_children_lookup(db, Team, "parent_team_id"),
            noun="parent team",
            self_error=SelfParentingError,
            missing_error=ParentTeamNotFoundError,
        )
    except InvalidHierarchyError as exc:
        logger.warning("rejected parent %s for team %s: %s", proposed_parent_id, team_id, exc.detail)
        raise
