"""Tree views built from flat, already-loaded snapshots.

Nothing here touches the database: callers load the rows (sorted the way the
siblings should appear) and pass them in.
"""
from __future__ import annotations
import logging
from collections import defaultdict
from typing import Iterable, Mapping, Optional

from core.config_loader import settings
from core.exceptions import HierarchyIntegrityError
from .schema import OrgChartNode, TeamHierarchyNode, TeamLeadSummary

logger = logging.getLogger(__name__)


def _group_by(rows: Iterable, attr: str) -> dict[Optional[str], list]:
    groups: dict[Optional[str], list] = defaultdict(list)
    for row in rows:
        groups[getattr(row, attr)].append(row)
    return groups


def _warn_unreachable(kind: str, total: int, emitted: int) -> None:
    if emitted < total:
        logger.warning("%d %s(s) unreachable from any root (dangling parent or cycle)", total - emitted, kind)


def build_org_chart(employees: Iterable, *, max_depth: Optional[int] = None) -> list[OrgChartNode]:
    """Manager forest: roots are employees without a manager.

    Raises HierarchyIntegrityError instead of recursing past ``max_depth``.
    """
    employees = list(employees)
    limit = max_depth or settings.MAX_HIERARCHY_DEPTH
    by_manager = _group_by(employees, "manager_id")
    emitted = 0

    def build(manager_id: Optional[str], depth: int) -> list[OrgChartNode]:
        nonlocal emitted
        nodes = []
        for emp in by_manager.get(manager_id, []):
            if depth > limit:
                raise HierarchyIntegrityError(
                    f"manager chain deeper than {limit} levels at employee {emp.id}", node_id=emp.id
                )
            emitted += 1
            nodes.append(OrgChartNode(
                id=emp.id,
                name=f"{emp.first_name} {emp.last_name}",
                title=emp.title,
                department=emp.department,
                team_id=emp.team_id,
                children=build(emp.id, depth + 1),
            ))
        return nodes

    forest = build(None, 0)
    _warn_unreachable("employee", len(employees), emitted)
    return forest


def build_team_hierarchy(
    teams: Iterable,
    member_counts: Mapping[str, int],
    *,
    max_depth: Optional[int] = None,
) -> list[TeamHierarchyNode]:
    """Team forest with per-team member counts and subtree rollups.

    ``teams`` rows need ``lead`` loaded (or None); ``member_counts`` maps team
    id to the number of membership rows.
    """
    teams = list(teams)
    limit = max_depth or settings.MAX_HIERARCHY_DEPTH
    by_parent = _group_by(teams, "parent_team_id")
    emitted = 0

    def build(parent_id: Optional[str], depth: int) -> list[TeamHierarchyNode]:
        nonlocal emitted
        nodes = []
        for team in by_parent.get(parent_id, []):
            if depth > limit:
                raise HierarchyIntegrityError(
                    f"team chain deeper than {limit} levels at team {team.id}", node_id=team.id
                )
            emitted += 1
            subs = build(team.id, depth + 1)
            count = member_counts.get(team.id, 0)
            lead = team.lead
            nodes.append(TeamHierarchyNode(
                id=team.id,
                name=team.name,
                description=team.description,
                lead=TeamLeadSummary(
                    id=lead.id, name=f"{lead.first_name} {lead.last_name}", title=lead.title
                ) if lead is not None else None,
                member_count=count,
                total_member_count=count + sum(s.total_member_count for s in subs),
                sub_teams=subs,
            ))
        return nodes

    forest = build(None, 0)
    _warn_unreachable("team", len(teams), emitted)
    return forest
