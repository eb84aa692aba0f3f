# tests/conftest.py
import asyncio
import os
import uuid
from http.cookies import SimpleCookie

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ---- 測試期環境變數（先於 app 載入）----
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_sessapi.db")
# 測試用最低 work factor，加快 bcrypt
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from sessapi.main import app  # noqa: E402
from sessapi.db.session import AsyncSessionLocal, drop_models, init_models  # noqa: E402
from sessapi.services.credentials import create_user  # noqa: E402

API = "/api/v1"


@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    """測試前 drop + create_all，測試後 drop_all（用 asyncio.run 避免事件圈衝突）。"""
    asyncio.run(drop_models())
    asyncio.run(init_models())
    yield
    asyncio.run(drop_models())


@pytest_asyncio.fixture
async def client():
    """使用 ASGITransport 直接掛載 app，不需啟動伺服器。"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    session = AsyncSessionLocal()
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def make_user():
    """建立一個 email 不重複的使用者，回傳 (UserRead, password)。"""
    async def _make(password: str = "MyStrongPass", email: str = None):
        email = email or f"user-{uuid.uuid4().hex[:12]}@example.com"
        async with AsyncSessionLocal() as session:
            user = await create_user(session, email, password)
        assert user is not None, f"could not seed {email}"
        return user, password

    return _make


def set_cookies(resp) -> dict:
    """解析 Set-Cookie → {name: Morsel}"""
    jar = SimpleCookie()
    for raw in resp.headers.get_list("set-cookie"):
        jar.load(raw)
    return dict(jar)


def cookie_header(sid, stok) -> dict:
    return {"Cookie": f"sid={sid}; stok={stok}"}


async def login(client: AsyncClient, email: str, password: str) -> dict:
    """登入並回傳帶 session cookie 的 headers；清掉 client 自己的 cookie jar。"""
    r = await client.post(f"{API}/login.json", data={"email": email, "pass": password})
    assert r.status_code == 200, r.text
    cookies = set_cookies(r)
    client.cookies.clear()
    return cookie_header(cookies["sid"].value, cookies["stok"].value)
