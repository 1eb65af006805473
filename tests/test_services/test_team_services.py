import unittest
from datetime import date
from types import SimpleNamespace as Obj

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from core.database import Base
import models_bootstrap  # noqa: F401
from core.exceptions import ConflictError, CycleError, DepthExceededError, NotFoundError, ParentTeamNotFoundError
from auditlog.models import AuditAction, AuditLog
from employee.models import Employee
from membership.models import EmployeeTeamMembership
from team.models import Team
from team import service
from team.schema import TeamCreatePayload, TeamUpdate

ADMIN = Obj(id=None, role=Obj(name="admin"), employee=None)


class TeamServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        TestingSession = sessionmaker(bind=self.engine, future=True)
        self.db = TestingSession()

        # Engineering
        #   Backend
        #   Frontend
        #     Web
        self.lead = Employee(first_name="Lena", last_name="Berg", title="Director", hire_date=date(2020, 1, 1))
        self.dev = Employee(first_name="Dev", last_name="Ops", title="Engineer", hire_date=date(2021, 1, 1))
        self.db.add_all([self.lead, self.dev])
        self.db.flush()

        eng = Team(name="Engineering", lead_id=self.lead.id)
        self.db.add(eng)
        self.db.flush()
        be = Team(name="Backend", parent_team_id=eng.id)
        fe = Team(name="Frontend", parent_team_id=eng.id)
        self.db.add_all([be, fe])
        self.db.flush()
        web = Team(name="Web", parent_team_id=fe.id)
        self.db.add(web)
        self.db.commit()

        self.eng_id, self.be_id, self.fe_id, self.web_id = eng.id, be.id, fe.id, web.id
        self.lead_id, self.dev_id = self.lead.id, self.dev.id

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    # ---- reads ----
    def test_get_teams_ordered_by_name(self):
        names = [t.name for t in service.get_teams(self.db)]
        self.assertEqual(names, ["Backend", "Engineering", "Frontend", "Web"])

    def test_get_teams_search(self):
        self.assertEqual([t.name for t in service.get_teams(self.db, search="END")], ["Backend", "Frontend"])

    def test_get_team_detail(self):
        detail = service.get_team_detail(self.db, self.eng_id)
        self.assertEqual(detail.lead.name, "Lena Berg")
        self.assertIsNone(detail.parent_team)
        self.assertEqual([t.name for t in detail.sub_teams], ["Backend", "Frontend"])
        self.assertEqual(detail.member_count, 0)

    def test_get_team_detail_not_found(self):
        with self.assertRaises(NotFoundError):
            service.get_team_detail(self.db, "missing")

    # ---- create / update ----
    def test_create_team_under_parent(self):
        row = service.create_team(self.db, TeamCreatePayload(name="Mobile", parent_team_id=self.eng_id), actor=ADMIN)
        self.assertEqual(row.parent_team_id, self.eng_id)
        self.assertEqual(len(list(self.db.scalars(select(AuditLog)))), 1)

    def test_create_team_unknown_parent(self):
        with self.assertRaises(ParentTeamNotFoundError):
            service.create_team(self.db, TeamCreatePayload(name="Lost", parent_team_id="nope"), actor=ADMIN)

    def test_create_team_unknown_lead(self):
        with self.assertRaises(NotFoundError):
            service.create_team(self.db, TeamCreatePayload(name="Lost", lead_id="nope"), actor=ADMIN)

    def test_update_team_cycle_rejected(self):
        with self.assertRaises(CycleError):
            service.update_team(self.db, self.eng_id, TeamUpdate(parent_team_id=self.web_id), actor=ADMIN)

    def test_update_team_rename(self):
        row = service.update_team(self.db, self.be_id, TeamUpdate(name="Services"), actor=ADMIN)
        self.assertEqual(row.name, "Services")
        self.assertEqual(row.parent_team_id, self.eng_id)

    def _chain(self, prefix, length):
        rows = []
        for i in range(length):
            row = Team(name=f"{prefix}{i}", parent_team_id=rows[-1].id if rows else None)
            self.db.add(row)
            self.db.flush()
            rows.append(row)
        self.db.commit()
        return [r.id for r in rows]

    def test_update_team_resending_parent_at_max_depth(self):
        chain = self._chain("d", 21)
        row = service.update_team(
            self.db, chain[20], TeamUpdate(parent_team_id=chain[19], description="deepest"), actor=ADMIN
        )
        self.assertEqual(row.parent_team_id, chain[19])

    def test_update_team_moving_subtree_too_deep(self):
        deep = self._chain("t", 16)
        moving = self._chain("u", 11)
        with self.assertRaises(DepthExceededError):
            service.update_team(self.db, moving[0], TeamUpdate(parent_team_id=deep[15]), actor=ADMIN)

        self.db.expire_all()
        self.assertIsNone(service.get_team(self.db, moving[0]).parent_team_id)
        self.assertTrue(service.get_team_hierarchy(self.db))

    # ---- delete ----
    def test_delete_root_team_promotes_children_to_roots(self):
        result = service.delete_team(self.db, self.eng_id, actor=ADMIN)
        self.assertEqual(result.reassigned_subteam_count, 2)
        self.assertIsNone(result.new_parent_id)

        self.db.expire_all()
        self.assertIsNone(service.get_team(self.db, self.eng_id))
        self.assertIsNone(service.get_team(self.db, self.be_id).parent_team_id)
        self.assertIsNone(service.get_team(self.db, self.fe_id).parent_team_id)
        # grandchildren keep their parent
        self.assertEqual(service.get_team(self.db, self.web_id).parent_team_id, self.fe_id)

    def test_delete_middle_team_hands_children_to_grandparent(self):
        result = service.delete_team(self.db, self.fe_id, actor=ADMIN)
        self.assertEqual(result.reassigned_subteam_count, 1)
        self.assertEqual(result.new_parent_id, self.eng_id)

        self.db.expire_all()
        self.assertEqual(service.get_team(self.db, self.web_id).parent_team_id, self.eng_id)

    def test_delete_team_clears_members(self):
        self.db.get(Employee, self.dev_id).team_id = self.fe_id
        self.db.commit()
        service.add_team_member(self.db, self.fe_id, self.dev_id, actor=ADMIN)

        service.delete_team(self.db, self.fe_id, actor=ADMIN)

        self.db.expire_all()
        self.assertIsNone(self.db.get(Employee, self.dev_id).team_id)
        self.assertEqual(list(self.db.scalars(select(EmployeeTeamMembership))), [])
        delete_log = self.db.scalars(select(AuditLog).where(AuditLog.action == AuditAction.delete)).one()
        self.assertEqual(delete_log.changes["new_parent_id"], self.eng_id)

    def test_delete_team_not_found(self):
        with self.assertRaises(NotFoundError):
            service.delete_team(self.db, "missing", actor=ADMIN)

    # ---- hierarchy ----
    def test_hierarchy_rollup(self):
        service.add_team_member(self.db, self.web_id, self.dev_id, actor=ADMIN)
        service.add_team_member(self.db, self.eng_id, self.lead_id, actor=ADMIN)

        forest = service.get_team_hierarchy(self.db)
        self.assertEqual([t.name for t in forest], ["Engineering"])
        eng = forest[0]
        self.assertEqual(eng.lead.name, "Lena Berg")
        self.assertEqual(eng.member_count, 1)
        self.assertEqual(eng.total_member_count, 2)
        fe = [t for t in eng.sub_teams if t.name == "Frontend"][0]
        self.assertEqual(fe.member_count, 0)
        self.assertEqual(fe.total_member_count, 1)

    # ---- membership ----
    def test_add_member_twice_conflicts(self):
        service.add_team_member(self.db, self.be_id, self.dev_id, actor=ADMIN)
        with self.assertRaises(ConflictError):
            service.add_team_member(self.db, self.be_id, self.dev_id, actor=ADMIN)

    def test_add_member_unknown_employee(self):
        with self.assertRaises(NotFoundError):
            service.add_team_member(self.db, self.be_id, "ghost", actor=ADMIN)

    def test_members_listed_and_removed(self):
        service.add_team_member(self.db, self.be_id, self.dev_id, actor=ADMIN)
        service.add_team_member(self.db, self.be_id, self.lead_id, actor=ADMIN)
        self.assertEqual([e.last_name for e in service.get_team_members(self.db, self.be_id)], ["Berg", "Ops"])

        service.remove_team_member(self.db, self.be_id, self.dev_id, actor=ADMIN)
        self.assertEqual([e.id for e in service.get_team_members(self.db, self.be_id)], [self.lead_id])

    def test_remove_non_member(self):
        with self.assertRaises(NotFoundError):
            service.remove_team_member(self.db, self.be_id, self.dev_id, actor=ADMIN)


if __name__ == "__main__":
    unittest.main()
