"""
Lavandaria API — Role Matrix Unit Tests
=========================================

What we test:
    ✅ can_manage follows the lookup table exactly
    ✅ Unknown or missing roles manage nothing
    ✅ Role.parse tolerates case and whitespace, rejects unknown values
"""

import pytest

from app.auth.roles import MANAGEABLE_ROLES, Role, can_manage


class TestCanManage:

    @pytest.mark.parametrize("actor, target, expected", [
        ("master", "master", True),
        ("master", "admin", True),
        ("master", "worker", True),
        ("master", "client", True),
        ("admin", "admin", False),
        ("admin", "master", False),
        ("admin", "worker", True),
        ("admin", "client", True),
    ])
    def test_matrix(self, actor, target, expected):
        assert can_manage(actor, target) is expected

    @pytest.mark.parametrize("target", list(Role))
    def test_worker_manages_nobody(self, target):
        assert can_manage(Role.WORKER, target) is False

    @pytest.mark.parametrize("target", list(Role))
    def test_client_manages_nobody(self, target):
        assert can_manage(Role.CLIENT, target) is False

    def test_unknown_roles(self):
        assert can_manage("superuser", "worker") is False
        assert can_manage("master", "superuser") is False
        assert can_manage(None, "client") is False

    def test_table_covers_every_role(self):
        assert set(MANAGEABLE_ROLES) == set(Role)


class TestRoleParse:

    def test_normalizes_case_and_whitespace(self):
        assert Role.parse(" Admin ") is Role.ADMIN

    @pytest.mark.parametrize("value", [None, "", "root"])
    def test_rejects_missing_and_unknown(self, value):
        assert Role.parse(value) is None
