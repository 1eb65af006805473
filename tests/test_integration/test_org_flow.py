import unittest
from types import SimpleNamespace as Obj

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.database import Base, get_db
from auth.services.auth_service import get_current_active_user
from auth.utils.auth_utils import get_password_hash
from role.models import Role, RoleName
from user.models import User


def _sqlite_engine():
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )


class OrgFlowTests(unittest.TestCase):
    def setUp(self):
        self.engine = _sqlite_engine()
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, future=True)

        def _get_db_override():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = _get_db_override

        # --- Seed an admin login ---
        with self.SessionLocal() as db:
            role = Role(name=RoleName.admin)
            db.add(role)
            db.flush()
            user = User(email="admin@example.com", password_hash="x", role_id=role.id)
            db.add(user)
            db.commit()
            self.admin_id = user.id

        app.dependency_overrides[get_current_active_user] = lambda: Obj(
            id=self.admin_id, role=Obj(name="admin"), employee=None
        )
        self.client = TestClient(app)

    def tearDown(self):
        for dep in [get_db, get_current_active_user]:
            app.dependency_overrides.pop(dep, None)
        self.engine.dispose()

    def _employee(self, first_name, manager_id=None, **extra):
        body = {"first_name": first_name, "last_name": "Test", "title": "Staff", "hire_date": "2023-01-01"}
        if manager_id:
            body["manager_id"] = manager_id
        body.update(extra)
        r = self.client.post("/api/employees", json=body)
        self.assertEqual(r.status_code, 201, r.text)
        return r.json()["id"]

    def _team(self, name, parent_team_id=None):
        r = self.client.post("/api/teams", json={"name": name, "parent_team_id": parent_team_id})
        self.assertEqual(r.status_code, 201, r.text)
        return r.json()["id"]

    def test_manager_chain_flow(self):
        # 1) CEO <- CTO <- Dev
        ceo = self._employee("Ceo")
        cto = self._employee("Cto", ceo, salary=150000)
        dev = self._employee("Dev", cto, email="dev@example.com")

        # 2) Closing the loop is rejected and nothing changes
        r = self.client.patch(f"/api/employees/{ceo}", json={"manager_id": dev})
        self.assertEqual(r.status_code, 422, r.text)
        self.assertIn(f"{ceo} -> {dev} -> {cto} -> {ceo}", r.json()["detail"])

        r = self.client.patch(f"/api/employees/{dev}", json={"manager_id": dev})
        self.assertEqual(r.status_code, 422, r.text)

        r = self.client.patch(f"/api/employees/{dev}", json={"manager_id": "nobody"})
        self.assertEqual(r.status_code, 422, r.text)

        # 3) Duplicate email is a conflict
        r = self.client.post("/api/employees", json={
            "first_name": "Copy", "last_name": "Cat", "title": "Staff",
            "hire_date": "2023-01-01", "email": "dev@example.com",
        })
        self.assertEqual(r.status_code, 409, r.text)

        # 4) Org chart nests the chain
        r = self.client.get("/api/employees/org-chart")
        self.assertEqual(r.status_code, 200, r.text)
        forest = r.json()
        self.assertEqual([n["id"] for n in forest], [ceo])
        self.assertEqual(forest[0]["children"][0]["id"], cto)
        self.assertEqual(forest[0]["children"][0]["children"][0]["id"], dev)

        # 5) Admin sees salary
        r = self.client.get(f"/api/employees/{cto}")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(float(r.json()["salary"]), 150000.0)

        # 6) Deleting the CTO leaves Dev as a root
        r = self.client.delete(f"/api/employees/{cto}")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["reassigned_report_count"], 1)

        r = self.client.get(f"/api/employees/{dev}")
        self.assertIsNone(r.json()["manager_id"])
        r = self.client.get("/api/employees/org-chart")
        self.assertEqual({n["id"] for n in r.json()}, {ceo, dev})

        # 7) Every mutation left an audit row
        r = self.client.get("/api/audit-logs/entity", params={"entity_type": "Employee", "entity_id": cto})
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual([row["action"] for row in r.json()], ["delete", "create"])
        self.assertEqual(r.json()[0]["user_id"], self.admin_id)

    def test_moving_subtree_past_depth_limit(self):
        # e0 <- ... <- e5 and f0 <- ... <- f15
        e_chain = [self._employee("e0")]
        for i in range(1, 6):
            e_chain.append(self._employee(f"e{i}", e_chain[-1]))
        f_chain = [self._employee("f0")]
        for i in range(1, 16):
            f_chain.append(self._employee(f"f{i}", f_chain[-1]))

        # e5 would sit 21 hops below f0
        r = self.client.patch(f"/api/employees/{e_chain[0]}", json={"manager_id": f_chain[15]})
        self.assertEqual(r.status_code, 422, r.text)
        r = self.client.get(f"/api/employees/{e_chain[0]}")
        self.assertIsNone(r.json()["manager_id"])

        r = self.client.get("/api/employees/org-chart")
        self.assertEqual(r.status_code, 200, r.text)

        # one level higher e5 lands exactly 20 hops down
        r = self.client.patch(f"/api/employees/{e_chain[0]}", json={"manager_id": f_chain[14]})
        self.assertEqual(r.status_code, 200, r.text)

        r = self.client.get("/api/employees/org-chart")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual([n["id"] for n in r.json()], [f_chain[0]])

    def test_team_tree_flow(self):
        eng = self._team("Engineering")
        fe = self._team("Frontend", eng)
        be = self._team("Backend", eng)
        dev = self._employee("Dev")

        # membership
        r = self.client.post(f"/api/teams/{fe}/members/{dev}")
        self.assertEqual(r.status_code, 201, r.text)
        r = self.client.post(f"/api/teams/{fe}/members/{dev}")
        self.assertEqual(r.status_code, 409, r.text)

        r = self.client.get("/api/teams/hierarchy")
        self.assertEqual(r.status_code, 200, r.text)
        root = r.json()[0]
        self.assertEqual(root["id"], eng)
        self.assertEqual(root["total_member_count"], 1)
        self.assertEqual([t["name"] for t in root["sub_teams"]], ["Backend", "Frontend"])

        # parent cycle rejected
        r = self.client.patch(f"/api/teams/{eng}", json={"parent_team_id": fe})
        self.assertEqual(r.status_code, 422, r.text)

        # deleting the root promotes both children
        r = self.client.delete(f"/api/teams/{eng}")
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["reassigned_subteam_count"], 2)
        self.assertIsNone(r.json()["new_parent_id"])

        for team_id in (fe, be):
            r = self.client.get(f"/api/teams/{team_id}")
            self.assertEqual(r.status_code, 200, r.text)
            self.assertIsNone(r.json()["parent_team_id"])

        r = self.client.get(f"/api/teams/{eng}")
        self.assertEqual(r.status_code, 404)

        r = self.client.get(f"/api/teams/{fe}/members")
        self.assertEqual([m["id"] for m in r.json()], [dev])

    def test_bulk_import_flow(self):
        rows = [
            {"first_name": "Ann", "last_name": "A", "title": "Dev", "hire_date": "2024-01-01",
             "email": "ann@example.com"},
            {"first_name": "Bad", "last_name": "Row", "title": "Dev", "hire_date": "not-a-date",
             "email": "bad@example.com"},
            {"first_name": "Ann", "last_name": "A", "title": "Senior Dev", "hire_date": "2024-01-01",
             "email": "ann@example.com"},
        ]
        r = self.client.post("/api/employees/bulk-import", json=rows)
        self.assertEqual(r.status_code, 200, r.text)
        body = r.json()
        self.assertEqual((body["created"], body["updated"], body["success"]), (1, 1, 2))
        self.assertEqual(body["errors"][0]["row"], 1)
        self.assertEqual(body["errors"][0]["email"], "bad@example.com")

        r = self.client.get("/api/employees", params={"search": "ann@"})
        self.assertEqual([e["title"] for e in r.json()], ["Senior Dev"])


class AuthFlowTests(unittest.TestCase):
    def setUp(self):
        self.engine = _sqlite_engine()
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, future=True)

        def _get_db_override():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = _get_db_override

        with self.SessionLocal() as db:
            admin = Role(name=RoleName.admin)
            employee = Role(name=RoleName.employee)
            db.add_all([admin, employee])
            db.flush()
            db.add(User(email="admin@example.com", password_hash=get_password_hash("admin-pass"), role_id=admin.id))
            db.add(User(
                email="gone@example.com", password_hash=get_password_hash("gone-pass"),
                role_id=employee.id, is_active=False,
            ))
            db.commit()

        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)
        self.engine.dispose()

    def _login(self, email, password):
        return self.client.post("/api/auth/token", json={"email": email, "password": password})

    def test_login_and_me(self):
        r = self._login("admin@example.com", "admin-pass")
        self.assertEqual(r.status_code, 200, r.text)
        token = r.json()["access_token"]
        self.assertEqual(r.json()["token_type"], "bearer")

        r = self.client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["email"], "admin@example.com")
        self.assertEqual(r.json()["role"]["name"], "admin")
        self.assertIsNone(r.json()["employee_id"])

    def test_wrong_password(self):
        r = self._login("admin@example.com", "nope-nope")
        self.assertEqual(r.status_code, 401)

    def test_inactive_user(self):
        r = self._login("gone@example.com", "gone-pass")
        self.assertEqual(r.status_code, 403)

    def test_missing_token(self):
        r = self.client.get("/api/employees")
        self.assertEqual(r.status_code, 401)

    def test_admin_links_login_to_employee(self):
        token = self._login("admin@example.com", "admin-pass").json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        r = self.client.post("/api/employees", headers=headers, json={
            "first_name": "Mia", "last_name": "Manager", "title": "Lead", "hire_date": "2020-01-01",
        })
        self.assertEqual(r.status_code, 201, r.text)
        employee_id = r.json()["id"]

        r = self.client.post("/api/users", headers=headers, json={
            "email": "mia@example.com", "password": "mia-pass-1", "role": "manager", "employee_id": employee_id,
        })
        self.assertEqual(r.status_code, 201, r.text)
        self.assertEqual(r.json()["employee_id"], employee_id)

        # the new manager sees only themself
        token = self._login("mia@example.com", "mia-pass-1").json()["access_token"]
        r = self.client.get("/api/employees", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual([e["id"] for e in r.json()], [employee_id])


if __name__ == "__main__":
    unittest.main()
