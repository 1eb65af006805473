import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from core.database import Base
import models_bootstrap  # noqa: F401
from auditlog.models import AuditAction, AuditLog
from auditlog import service


class AuditLogServiceTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        TestingSession = sessionmaker(bind=self.engine, future=True)
        self.db = TestingSession()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _seed(self, **overrides):
        data = dict(actor_id="u1", action=AuditAction.update, entity_type="Employee", entity_id="e1")
        data.update(overrides)
        return service.record_audit(self.db, **data)

    def test_record_audit_encodes_changes(self):
        row = self._seed(changes={"hire_date": date(2024, 1, 2), "salary": Decimal("10.50")})
        self.assertIsNotNone(row.id)
        self.assertEqual(row.changes, {"hire_date": "2024-01-02", "salary": 10.5})

    def test_record_audit_failure_is_swallowed_and_logged(self):
        with patch.object(self.db, "commit", side_effect=OperationalError("stmt", {}, Exception("down"))):
            with self.assertLogs("auditlog.service", level="WARNING"):
                row = self._seed()
        self.assertIsNone(row)
        self.assertEqual(service.get_audit_logs(self.db), [])

    def test_get_audit_logs_filters(self):
        self._seed(entity_id="e1")
        self._seed(entity_id="e2", action=AuditAction.delete)
        self._seed(entity_type="Team", entity_id="t1", actor_id="u2")

        self.assertEqual(len(service.get_audit_logs(self.db)), 3)
        self.assertEqual(len(service.get_audit_logs(self.db, entity_type="Employee")), 2)
        self.assertEqual([r.entity_id for r in service.get_audit_logs(self.db, action=AuditAction.delete)], ["e2"])
        self.assertEqual([r.entity_id for r in service.get_audit_logs(self.db, user_id="u2")], ["t1"])

    def test_get_audit_logs_newest_first_and_limited(self):
        base = datetime(2025, 1, 1, tzinfo=timezone.utc)
        for i in range(3):
            self.db.add(AuditLog(
                action=AuditAction.update, entity_type="Employee", entity_id=f"e{i}",
                created_at=base + timedelta(minutes=i),
            ))
        self.db.commit()

        rows = service.get_audit_logs(self.db)
        self.assertEqual([r.entity_id for r in rows], ["e2", "e1", "e0"])
        self.assertEqual(len(service.get_audit_logs(self.db, limit=2)), 2)

        later = service.get_audit_logs(self.db, start_date=base + timedelta(minutes=1))
        self.assertEqual({r.entity_id for r in later}, {"e1", "e2"})

    def test_get_audit_logs_for_entity(self):
        self._seed(entity_id="e1")
        self._seed(entity_id="e1", action=AuditAction.delete)
        self._seed(entity_id="e9")
        rows = service.get_audit_logs_for_entity(self.db, "Employee", "e1")
        self.assertEqual(len(rows), 2)


if __name__ == "__main__":
    unittest.main()
