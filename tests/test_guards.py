"""
Lavandaria API — Role Gate Tests (through the HTTP stack)
===========================================================

What we test:
    ✅ No session / unknown role / tampered cookie → 401
    ✅ Insufficient role → 403 with the route's message and code
    ✅ The role gate runs before pagination parsing
    ✅ Allowed roles reach the handler with their Principal
    ✅ exactly / require_master / require_client / can_manage_target on their own
    ✅ Client account and order management routes are admin-only
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from starlette.middleware.sessions import SessionMiddleware

from app.auth.guards import can_manage_target, exactly, require_client, require_master
from app.auth.roles import Role
from app.auth.session import Principal
from app.config import settings
from app.main import register_exception_handlers
from app.schemas.client import ClientResponse
from app.schemas.laundry_order import FinanceSummary, LaundryOrderResponse
from app.schemas.user import UserResponse

NOW = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)


def worker_user(user_id=3):
    return UserResponse(
        id=user_id, username="910000003", role="worker", full_name="Ana Silva",
        phone="910000003", is_active=True, created_at=NOW,
    )


def order(order_id=1, client_id=7):
    return LaundryOrderResponse(
        id=order_id, order_number="LDR-20250115-001", client_id=client_id,
        order_type="bulk_kg", status="received", total_price=Decimal("12.50"),
        created_at=NOW,
    )


class TestAuthenticationRequired:

    @pytest.mark.asyncio
    async def test_no_session(self, test_client):
        response = await test_client.get("/api/users")
        body = response.json()

        assert response.status_code == 401
        assert body["success"] is False
        assert body["code"] == "AUTHENTICATION_REQUIRED"
        assert body["error"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_unknown_role_in_session(self, test_client, session_cookie):
        cookie = session_cookie({"user_type": "superuser", "user_id": 1})
        test_client.cookies.set(settings.session_cookie, cookie)

        response = await test_client.get("/api/laundry-orders")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_tampered_cookie(self, test_client, session_cookie):
        cookie = session_cookie({"user_type": "master", "user_id": 1})
        test_client.cookies.set(settings.session_cookie, cookie[:-4] + "AAAA")

        response = await test_client.get("/api/users")
        assert response.status_code == 401


class TestStaffUserRoutes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.WORKER, Role.CLIENT])
    async def test_non_admin_roles_are_denied(self, test_client, sign_in, role):
        sign_in(role)
        response = await test_client.get("/api/users")
        body = response.json()

        assert response.status_code == 403
        assert body["code"] == "FORBIDDEN"
        assert body["error"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_gate_runs_before_pagination(self, test_client, sign_in):
        sign_in(Role.WORKER)
        response = await test_client.get("/api/users?limit=500&sort=evil_column")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_bad_sort_for_allowed_role(self, test_client, sign_in):
        sign_in(Role.ADMIN)
        response = await test_client.get("/api/users?sort=password")
        body = response.json()

        assert response.status_code == 400
        assert body["code"] == "INVALID_SORT_FIELD"
        assert body["details"][0]["field"] == "sort"

    @pytest.mark.asyncio
    async def test_bad_order_for_allowed_role(self, test_client, sign_in):
        sign_in(Role.MASTER)
        response = await test_client.get("/api/users?order=random")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ORDER"

    @pytest.mark.asyncio
    async def test_admin_lists_users_with_clamped_page(self, test_client, sign_in):
        sign_in(Role.ADMIN, user_id=2)
        mock_list = AsyncMock(return_value=([worker_user()], 41))

        with patch("app.routes.users.user_service.list_users", new=mock_list):
            response = await test_client.get("/api/users?limit=500&offset=-5&order=asc")

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"][0]["full_name"] == "Ana Silva"
        assert body["_meta"]["count"] == 1
        assert body["_meta"]["total"] == 41
        assert body["_meta"]["limit"] == 100
        assert body["_meta"]["offset"] == 0

        _, principal, page = mock_list.await_args.args
        assert principal.role is Role.ADMIN
        assert principal.user_id == 2
        assert (page.limit, page.offset, page.sort, page.order) == (100, 0, "id", "ASC")


class TestLaundryOrderRoutes:

    @pytest.mark.asyncio
    async def test_worker_denied_finance_summary(self, test_client, sign_in):
        sign_in(Role.WORKER)
        response = await test_client.get("/api/laundry-orders/summary/finance")
        body = response.json()

        assert response.status_code == 403
        assert body["code"] == "FINANCE_ACCESS_DENIED"
        assert body["error"] == "Finance access denied"

    @pytest.mark.asyncio
    async def test_master_reads_finance_summary(self, test_client, sign_in):
        sign_in(Role.MASTER)
        summary = FinanceSummary(
            order_count=2,
            total_revenue=Decimal("30.00"),
            revenue_by_status={"ready": Decimal("30.00")},
        )
        with patch(
            "app.routes.laundry_orders.laundry_order_service.finance_summary",
            new=AsyncMock(return_value=summary),
        ):
            response = await test_client.get("/api/laundry-orders/summary/finance")

        assert response.status_code == 200
        assert response.json()["data"]["order_count"] == 2

    @pytest.mark.asyncio
    async def test_client_cannot_change_status(self, test_client, sign_in):
        sign_in(Role.CLIENT, client_id=7)
        response = await test_client.patch("/api/laundry-orders/1/status", json={"status": "ready"})
        body = response.json()

        assert response.status_code == 403
        assert body["error"] == "Staff access required"

    @pytest.mark.asyncio
    async def test_invalid_status_value(self, test_client, sign_in):
        sign_in(Role.WORKER)
        response = await test_client.patch("/api/laundry-orders/1/status", json={"status": "lost"})
        body = response.json()

        assert response.status_code == 400
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "status"

    @pytest.mark.asyncio
    async def test_client_lists_own_orders(self, test_client, sign_in):
        sign_in(Role.CLIENT, client_id=7)
        mock_list = AsyncMock(return_value=([order(client_id=7)], 1))

        with patch("app.routes.laundry_orders.laundry_order_service.list_orders", new=mock_list):
            response = await test_client.get("/api/laundry-orders")

        assert response.status_code == 200
        assert response.json()["data"][0]["client_id"] == 7

        _, principal, page = mock_list.await_args.args
        assert principal.role is Role.CLIENT
        assert principal.client_id == 7
        assert page.sort == "created_at"
        assert page.order == "DESC"


def client_profile(client_id=7):
    return ClientResponse(
        id=client_id, phone="912345678", full_name="Rui Pereira",
        first_name="Rui", last_name="Pereira", must_change_password=False,
    )


def guarded_app():
    """A bare app exposing one route per guard, for guards no route uses alone."""
    application = FastAPI()
    application.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
    )
    register_exception_handlers(application)

    def echo(principal: Principal) -> dict:
        return {"role": principal.role.value, "user_id": principal.user_id}

    @application.get("/worker-only")
    async def worker_only(principal: Principal = Depends(exactly(Role.WORKER))):
        return echo(principal)

    @application.get("/master-only")
    async def master_only(principal: Principal = Depends(require_master)):
        return echo(principal)

    @application.get("/client-only")
    async def client_only(principal: Principal = Depends(require_client)):
        return echo(principal)

    @application.get("/manage-admins")
    async def manage_admins(principal: Principal = Depends(can_manage_target(Role.ADMIN))):
        return echo(principal)

    return application


@pytest_asyncio.fixture
async def guard_client():
    transport = ASGITransport(app=guarded_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def guard_sign_in(guard_client, session_cookie):
    def _sign_in(role, user_id=1):
        role = Role(role)
        data = {"user_type": role.value, "user_name": "Test User"}
        if role is Role.CLIENT:
            data["client_id"] = 7
            data["must_change_password"] = False
        else:
            data["user_id"] = user_id
        guard_client.cookies.set(settings.session_cookie, session_cookie(data), domain="test.local")

    return _sign_in


class TestGuardFactories:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/worker-only", "/master-only", "/client-only", "/manage-admins"])
    async def test_no_session(self, guard_client, path):
        response = await guard_client.get(path)

        assert response.status_code == 401
        assert response.json()["code"] == "AUTHENTICATION_REQUIRED"

    @pytest.mark.asyncio
    async def test_exactly_admits_only_its_role(self, guard_client, guard_sign_in):
        guard_sign_in(Role.MASTER)
        denied = await guard_client.get("/worker-only")
        assert denied.status_code == 403
        assert denied.json()["error"] == "Worker access required"

        guard_sign_in(Role.WORKER, user_id=3)
        allowed = await guard_client.get("/worker-only")
        assert allowed.status_code == 200
        assert allowed.json() == {"role": "worker", "user_id": 3}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.ADMIN, Role.WORKER, Role.CLIENT])
    async def test_require_master_denies_others(self, guard_client, guard_sign_in, role):
        guard_sign_in(role)
        response = await guard_client.get("/master-only")

        assert response.status_code == 403
        assert response.json()["error"] == "Master access required"

    @pytest.mark.asyncio
    async def test_require_master_admits_master(self, guard_client, guard_sign_in):
        guard_sign_in(Role.MASTER)
        response = await guard_client.get("/master-only")

        assert response.status_code == 200
        assert response.json()["role"] == "master"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.MASTER, Role.ADMIN, Role.WORKER])
    async def test_require_client_denies_staff(self, guard_client, guard_sign_in, role):
        guard_sign_in(role)
        response = await guard_client.get("/client-only")

        assert response.status_code == 403
        assert response.json()["error"] == "Client access required"

    @pytest.mark.asyncio
    async def test_require_client_admits_client(self, guard_client, guard_sign_in):
        guard_sign_in(Role.CLIENT)
        response = await guard_client.get("/client-only")

        assert response.status_code == 200
        assert response.json() == {"role": "client", "user_id": None}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role, status", [
        (Role.MASTER, 200), (Role.ADMIN, 403), (Role.WORKER, 403), (Role.CLIENT, 403),
    ])
    async def test_can_manage_target_follows_matrix(self, guard_client, guard_sign_in, role, status):
        guard_sign_in(role)
        response = await guard_client.get("/manage-admins")

        assert response.status_code == status
        if status == 403:
            assert response.json()["error"] == "You cannot manage this user type"


class TestClientRoutes:

    @pytest.mark.asyncio
    async def test_own_profile_requires_session(self, test_client):
        response = await test_client.get("/api/clients/me")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_staff_have_no_own_client_profile(self, test_client, sign_in):
        sign_in(Role.WORKER)
        response = await test_client.get("/api/clients/me")

        assert response.status_code == 403
        assert response.json()["error"] == "Client access required"

    @pytest.mark.asyncio
    async def test_client_reads_own_profile(self, test_client, sign_in):
        sign_in(Role.CLIENT, client_id=7)
        mock_profile = AsyncMock(return_value=client_profile(7))

        with patch("app.routes.clients.client_service.get_own_profile", new=mock_profile):
            response = await test_client.get("/api/clients/me")

        assert response.status_code == 200
        assert response.json()["data"]["full_name"] == "Rui Pereira"
        _, principal = mock_profile.await_args.args
        assert principal.client_id == 7

    @pytest.mark.asyncio
    async def test_worker_lists_clients(self, test_client, sign_in):
        sign_in(Role.WORKER)
        with patch(
            "app.routes.clients.client_service.list_clients",
            new=AsyncMock(return_value=([client_profile()], 1)),
        ):
            response = await test_client.get("/api/clients")

        assert response.status_code == 200
        assert response.json()["_meta"]["total"] == 1

    @pytest.mark.asyncio
    async def test_client_cannot_list_clients(self, test_client, sign_in):
        sign_in(Role.CLIENT)
        response = await test_client.get("/api/clients")
        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, path", [
        ("GET", "/api/clients/7"),
        ("POST", "/api/clients"),
        ("PUT", "/api/clients/7"),
        ("DELETE", "/api/clients/7"),
    ])
    async def test_worker_cannot_manage_clients(self, test_client, sign_in, method, path):
        sign_in(Role.WORKER)
        response = await test_client.request(method, path, json={"phone": "912345678"})

        assert response.status_code == 403
        assert response.json()["error"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_admin_creates_client(self, test_client, sign_in):
        sign_in(Role.ADMIN, user_id=2)
        mock_create = AsyncMock(return_value=client_profile(11))

        with patch("app.routes.clients.client_service.create_client", new=mock_create):
            response = await test_client.post(
                "/api/clients",
                json={"phone": "912345678", "first_name": "Rui", "last_name": "Pereira"},
            )

        assert response.status_code == 201
        assert response.json()["data"]["id"] == 11
        _, principal, payload = mock_create.await_args.args
        assert principal.user_id == 2
        assert payload.phone == "912345678"

    @pytest.mark.asyncio
    async def test_individual_client_needs_names(self, test_client, sign_in):
        sign_in(Role.MASTER)
        response = await test_client.post("/api/clients", json={"phone": "912345678"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_master_deletes_client(self, test_client, sign_in):
        sign_in(Role.MASTER)
        mock_delete = AsyncMock(return_value=None)

        with patch("app.routes.clients.client_service.delete_client", new=mock_delete):
            response = await test_client.delete("/api/clients/7")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert mock_delete.await_args.args[2] == 7


class TestOrderManagementRoutes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.WORKER, Role.CLIENT])
    @pytest.mark.parametrize("method, path", [
        ("POST", "/api/laundry-orders"),
        ("PUT", "/api/laundry-orders/1"),
        ("DELETE", "/api/laundry-orders/1"),
    ])
    async def test_non_admin_roles_are_denied(self, test_client, sign_in, role, method, path):
        sign_in(role)
        response = await test_client.request(method, path, json={"client_id": 7})

        assert response.status_code == 403
        assert response.json()["error"] == "Admin access required"

    @pytest.mark.asyncio
    async def test_admin_creates_order(self, test_client, sign_in):
        sign_in(Role.ADMIN, user_id=2)
        mock_create = AsyncMock(return_value=order())

        with patch("app.routes.laundry_orders.laundry_order_service.create_order", new=mock_create):
            response = await test_client.post(
                "/api/laundry-orders", json={"client_id": 7, "total_price": "12.50"}
            )

        assert response.status_code == 201
        assert response.json()["data"]["order_number"] == "LDR-20250115-001"
        _, principal, payload = mock_create.await_args.args
        assert principal.role is Role.ADMIN
        assert payload.client_id == 7
        assert payload.total_price == Decimal("12.50")

    @pytest.mark.asyncio
    async def test_unknown_order_type(self, test_client, sign_in):
        sign_in(Role.MASTER)
        response = await test_client.post(
            "/api/laundry-orders", json={"client_id": 7, "order_type": "dry_clean"}
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "order_type"

    @pytest.mark.asyncio
    async def test_master_updates_order(self, test_client, sign_in):
        sign_in(Role.MASTER)
        mock_update = AsyncMock(return_value=order())

        with patch("app.routes.laundry_orders.laundry_order_service.update_order", new=mock_update):
            response = await test_client.put("/api/laundry-orders/1", json={"status": "ready"})

        assert response.status_code == 200
        _, _, order_id, payload = mock_update.await_args.args
        assert order_id == 1
        assert payload.status.value == "ready"
