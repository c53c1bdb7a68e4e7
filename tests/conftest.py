"""
Shared pytest fixtures.

The hosted backend is replaced by ``FakeBackend``: an in-memory stand-in for
its table API and remote procedures, served to the real ``SupabaseClient``
through ``httpx.MockTransport``.
"""
import json
import re
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

from app.database import SupabaseClient, get_db
from app.main import app
from app.security.auth import create_access_token
from app.utils.pricing import calculate_distance_km

REST_PREFIX = "/rest/v1/"
RESERVED_PARAMS = {"select", "order", "limit", "offset"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _match(value, expression: str) -> bool:
    op, _, arg = expression.partition(".")
    if op == "eq":
        return _text(value) == arg
    if op == "neq":
        return _text(value) != arg
    if op == "in":
        return _text(value) in arg.strip("()").split(",")
    if op == "is":
        return _text(value) == arg
    if op == "ilike":
        pattern = re.escape(arg).replace(r"\*", ".*")
        return value is not None and re.fullmatch(pattern, str(value), re.IGNORECASE) is not None
    if value is None:
        return False
    if op == "lt":
        return str(value) < arg
    if op == "lte":
        return str(value) <= arg
    if op == "gt":
        return str(value) > arg
    if op == "gte":
        return str(value) >= arg
    raise AssertionError(f"unsupported filter {expression}")


class FakeBackend:
    def __init__(self):
        self.tables = defaultdict(list)
        self.passwords = {}
        self.user_context = []
        self.requests = []
        self.views = {
            "bookings_with_details": self._bookings_with_details,
            "admin_reports_view": self._admin_reports_view,
        }
        self.rpcs = {
            "set_user_context": self._rpc_set_user_context,
            "login_user": self._rpc_login_user,
            "register_user": self._rpc_register_user,
            "admin_ban_user": self._rpc_admin_ban_user,
            "admin_unban_user": self._rpc_admin_unban_user,
            "admin_update_report_status": self._rpc_admin_update_report_status,
            "get_nearby_products": self._rpc_get_nearby_products,
            "get_product_distance": self._rpc_get_product_distance,
        }

    # SEEDING

    def add_user(self, username="renter", password="secret123", **overrides) -> dict:
        row = {
            "id": str(uuid4()),
            "username": username,
            "full_name": username.title(),
            "email": f"{username}@example.com",
            "phone_number": None,
            "avatar_url": None,
            "role": "user",
            "is_banned": False,
            "ban_reason": None,
            "latitude": None,
            "longitude": None,
            "address": None,
            "city": None,
            "created_at": _now(),
            "updated_at": _now(),
        }
        row.update(overrides)
        self.tables["users"].append(row)
        self.passwords[username] = password
        return row

    def add_product(self, owner_id, **overrides) -> dict:
        row = {
            "id": str(uuid4()),
            "name": "Sony A7 III",
            "category": "Mirrorless",
            "description": "Body only",
            "price_per_day": 100000,
            "image_urls": ["https://cdn.example.com/a7iii.jpg"],
            "is_available": True,
            "owner_id": owner_id,
            "created_at": _now(),
            "updated_at": _now(),
        }
        row.update(overrides)
        self.tables["products"].append(row)
        return row

    def add_booking(self, renter_id, product, **overrides) -> dict:
        start = date.today() + timedelta(days=1)
        end = start + timedelta(days=3)
        row = {
            "id": str(uuid4()),
            "user_id": renter_id,
            "product_id": product["id"],
            "owner_id": product["owner_id"],
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total_price": 300000,
            "delivery_method": "pickup",
            "delivery_fee": 0,
            "distance_km": None,
            "renter_address": None,
            "status": "pending",
            "payment_status": "pending",
            "payment_proof_url": None,
            "created_at": _now(),
            "updated_at": _now(),
        }
        row.update(overrides)
        self.tables["bookings"].append(row)
        return row

    def add_report(self, reporter_id, **overrides) -> dict:
        row = {
            "id": str(uuid4()),
            "reporter_id": reporter_id,
            "report_type": "user",
            "reported_user_id": None,
            "reported_product_id": None,
            "reason": "Did not return the lens",
            "description": None,
            "status": "pending",
            "reviewed_by": None,
            "reviewed_at": None,
            "admin_notes": None,
            "created_at": _now(),
            "updated_at": _now(),
        }
        row.update(overrides)
        self.tables["reports"].append(row)
        return row

    def find(self, table, row_id):
        for row in self.tables[table]:
            if row["id"] == row_id:
                return row
        return None

    # VIEWS

    def _bookings_with_details(self):
        rows = []
        for booking in self.tables["bookings"]:
            product = self.find("products", booking["product_id"]) or {}
            renter = self.find("users", booking["user_id"]) or {}
            owner = self.find("users", booking.get("owner_id")) or {}
            images = product.get("image_urls") or []
            rows.append({
                **booking,
                "product_name": product.get("name"),
                "product_category": product.get("category"),
                "product_price": product.get("price_per_day"),
                "product_image": images[0] if images else None,
                "renter_name": renter.get("full_name"),
                "owner_name": owner.get("full_name"),
            })
        return rows

    def _admin_reports_view(self):
        rows = []
        for report in self.tables["reports"]:
            reporter = self.find("users", report["reporter_id"]) or {}
            reported = self.find("users", report.get("reported_user_id")) or {}
            product = self.find("products", report.get("reported_product_id")) or {}
            reviewer = self.find("users", report.get("reviewed_by")) or {}
            rows.append({
                **report,
                "reporter_name": reporter.get("full_name"),
                "reporter_email": reporter.get("email"),
                "reported_user_name": reported.get("full_name"),
                "reported_user_email": reported.get("email"),
                "reported_user_is_banned": bool(reported.get("is_banned")),
                "reported_product_name": product.get("name"),
                "reported_product_owner_id": product.get("owner_id"),
                "reviewed_by_id": report.get("reviewed_by"),
                "reviewed_by_name": reviewer.get("full_name"),
            })
        return rows

    # REMOTE PROCEDURES

    def _rpc_set_user_context(self, params):
        self.user_context.append(params["user_id"])
        return None

    def _user_by_username(self, username):
        for row in self.tables["users"]:
            if row["username"] == username:
                return row
        return None

    def _rpc_login_user(self, params):
        user = self._user_by_username(params["p_username"])
        if user is None or self.passwords.get(user["username"]) != params["p_password"]:
            return {"success": False, "error": "Username atau password salah", "user": None}
        return {"success": True, "error": None, "user": dict(user)}

    def _rpc_register_user(self, params):
        if self._user_by_username(params["p_username"]):
            return {"success": False, "error": "Username sudah digunakan", "user": None}
        user = self.add_user(
            username=params["p_username"],
            password=params["p_password"],
            full_name=params["p_full_name"],
            email=params.get("p_email"),
            phone_number=params.get("p_phone_number"),
        )
        return {"success": True, "error": None, "user": dict(user)}

    def _rpc_admin_ban_user(self, params):
        user = self.find("users", params["p_user_id"])
        if user is None:
            return {"success": False, "error": "User tidak ditemukan"}
        admin = self.find("users", params["p_admin_id"])
        if admin is None or admin["role"] != "admin":
            return {"success": False, "error": "Hanya admin yang bisa ban user"}
        if user["is_banned"]:
            return {"success": False, "error": "User sudah dalam status banned"}
        user.update(is_banned=True, ban_reason=params["p_reason"], updated_at=_now())
        return {"success": True, "message": "User berhasil di-ban", "user_id": user["id"]}

    def _rpc_admin_unban_user(self, params):
        user = self.find("users", params["p_user_id"])
        if user is None:
            return {"success": False, "error": "User tidak ditemukan"}
        if not user["is_banned"]:
            return {"success": False, "error": "User tidak dalam status banned"}
        user.update(is_banned=False, ban_reason=None, updated_at=_now())
        return {"success": True, "message": "User berhasil di-unban", "user_id": user["id"]}

    def _rpc_admin_update_report_status(self, params):
        admin = self.find("users", params["p_admin_id"])
        if admin is None or admin["role"] != "admin":
            return {"success": False, "error": "Not an admin"}
        report = self.find("reports", params["p_report_id"])
        if report is None:
            return {"success": False, "error": "No rows updated"}
        report.update(
            status=params["p_status"],
            reviewed_by=params["p_admin_id"],
            reviewed_at=_now(),
            admin_notes=params.get("p_admin_notes"),
            updated_at=_now(),
        )
        return {"success": True, "data": dict(report)}

    def _owner_distance(self, product, lat, lon):
        owner = self.find("users", product["owner_id"]) or {}
        if owner.get("latitude") is None or owner.get("longitude") is None:
            return None
        return calculate_distance_km(lat, lon, owner["latitude"], owner["longitude"])

    def _rpc_get_nearby_products(self, params):
        search = (params.get("search_text") or "").lower()
        rows = []
        for product in self.tables["products"]:
            if not product["is_available"] or product["owner_id"] == params.get("exclude_user_id"):
                continue
            if search and search not in product["name"].lower():
                continue
            if params.get("filter_category") and product["category"] != params["filter_category"]:
                continue
            distance = self._owner_distance(product, params["user_lat"], params["user_lon"])
            if distance is None or distance > params["radius_km"]:
                continue
            owner = self.find("users", product["owner_id"])
            rows.append({
                **product,
                "owner_name": owner["full_name"],
                "owner_city": owner.get("city"),
                "owner_avatar": owner.get("avatar_url"),
                "distance_km": distance,
            })
        return sorted(rows, key=lambda row: row["distance_km"])

    def _rpc_get_product_distance(self, params):
        product = self.find("products", params["product_id"])
        if product is None:
            return None
        return self._owner_distance(product, params["user_lat"], params["user_lon"])

    # TRANSPORT

    def _rows(self, name):
        if name in self.views:
            return self.views[name]()
        return self.tables[name]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        assert path.startswith(REST_PREFIX), path
        name = path[len(REST_PREFIX):]

        if name.startswith("rpc/"):
            procedure = self.rpcs.get(name[len("rpc/"):])
            if procedure is None:
                return httpx.Response(404, json={"message": f"Could not find {name}", "code": "PGRST202"})
            result = procedure(json.loads(request.content or b"{}"))
            if result is None:
                return httpx.Response(204)
            return httpx.Response(200, json=result)

        params = request.url.params
        filters = [(k, v) for k, v in params.multi_items() if k not in RESERVED_PARAMS]
        rows = self._rows(name)
        matched = [row for row in rows if all(_match(row.get(k), v) for k, v in filters)]

        if request.method == "HEAD":
            total = len(matched)
            content_range = f"0-0/{total}" if total else "*/0"
            return httpx.Response(200, headers={"Content-Range": content_range})

        if request.method == "GET":
            result = [dict(row) for row in matched]
            order = params.get("order")
            if order:
                column, _, direction = order.partition(".")
                result.sort(key=lambda r: _text(r.get(column)), reverse=direction == "desc")
            if "products(" in (params.get("select") or ""):
                for row in result:
                    product = self.find("products", row.get("product_id"))
                    row["products"] = dict(product) if product else None
            offset = int(params.get("offset", 0))
            result = result[offset:]
            if params.get("limit") is not None:
                result = result[: int(params["limit"])]
            return httpx.Response(200, json=result)

        if request.method == "POST":
            body = json.loads(request.content)
            row = {"id": str(uuid4()), "created_at": _now(), "updated_at": _now(), **body}
            self.tables[name].append(row)
            return httpx.Response(201, json=[dict(row)])

        if request.method == "PATCH":
            body = json.loads(request.content)
            for row in matched:
                row.update(body)
                row["updated_at"] = _now()
            return httpx.Response(200, json=[dict(row) for row in matched])

        if request.method == "DELETE":
            for row in matched:
                self.tables[name].remove(row)
            return httpx.Response(200, json=[dict(row) for row in matched])

        raise AssertionError(f"unexpected {request.method} {path}")


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def db(backend):
    client = SupabaseClient(
        base_url="http://backend.test",
        api_key="test-anon-key",
        transport=httpx.MockTransport(backend.handler),
    )
    try:
        yield client
    finally:
        client.close()


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def owner(backend):
    return backend.add_user(username="owner")


@pytest.fixture
def renter(backend):
    return backend.add_user(username="renter")


@pytest.fixture
def admin(backend):
    return backend.add_user(username="admin", role="admin")


@pytest.fixture
def product(backend, owner):
    return backend.add_product(owner["id"])


def _auth_headers(user: dict) -> dict:
    token, _ = create_access_token({"sub": user["id"], "role": user["role"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Bearer headers for a seeded user row"""
    return _auth_headers
