"""
Wanderlust Backend - Account Route Tests
=========================================

Signup, login (including the post-login redirect memory) and logout.
"""

import pytest

from wanderlust.models.user import User
from wanderlust.routes.users import safe_redirect_target


class TestSignup:

    @pytest.mark.asyncio
    async def test_signup_logs_user_in(self, client, signup):
        await signup(client, "alice")

        page = await client.get("/listings")
        assert "Welcome to Wanderlust!" in page.text
        assert "Log out" in page.text

    @pytest.mark.asyncio
    async def test_password_is_stored_hashed(self, client, signup):
        from sqlalchemy import select
        from wanderlust.database import async_session_factory

        await signup(client, "alice", password="hunter2-hunter2")

        async with async_session_factory() as session:
            user = (await session.execute(select(User))).scalar_one()
        assert user.password_hash != "hunter2-hunter2"
        assert user.password_hash.startswith("$2")

    @pytest.mark.asyncio
    async def test_duplicate_username_flashes_and_returns_to_form(
        self, client, other_client, signup, row_count
    ):
        await signup(client, "alice")

        response = await other_client.post(
            "/signup",
            data={"username": "alice", "email": "other@example.com", "password": "x"},
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/signup"
        assert await row_count(User) == 1

        page = await other_client.get("/signup")
        assert "A user with the given username is already registered" in page.text

    @pytest.mark.asyncio
    async def test_invalid_email_flashes_error(self, client, row_count):
        response = await client.post(
            "/signup",
            data={"username": "bob", "email": "not-an-email", "password": "x"},
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/signup"
        assert await row_count(User) == 0


class TestLogin:

    @pytest.mark.asyncio
    async def test_wrong_password_flashes_and_returns_to_form(self, client, other_client, signup):
        await signup(client, "alice", password="right-password")

        response = await other_client.post(
            "/login", data={"username": "alice", "password": "wrong-password"}
        )
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

        page = await other_client.get("/login")
        assert "Password or username is incorrect" in page.text

    @pytest.mark.asyncio
    async def test_unknown_user_gets_same_message(self, client):
        response = await client.post("/login", data={"username": "ghost", "password": "x"})
        assert response.status_code == 302
        assert response.headers["location"] == "/login"

        page = await client.get("/login")
        assert "Password or username is incorrect" in page.text

    @pytest.mark.asyncio
    async def test_login_without_remembered_path_lands_on_listings(self, client, other_client, signup):
        await signup(client, "alice", password="pw")

        response = await other_client.post("/login", data={"username": "alice", "password": "pw"})
        assert response.status_code == 302
        assert response.headers["location"] == "/listings"

        page = await other_client.get("/listings")
        assert "Welcome back to Wanderlust!" in page.text

    @pytest.mark.asyncio
    async def test_login_returns_to_remembered_path_once(self, client, other_client, signup):
        await signup(client, "alice", password="pw")

        gated = await other_client.get("/listing/new?from=nav")
        assert gated.status_code == 302
        assert gated.headers["location"] == "/login"

        login_page = await other_client.get("/login")
        assert "You must be logged in to do that!" in login_page.text

        response = await other_client.post("/login", data={"username": "alice", "password": "pw"})
        assert response.headers["location"] == "/listing/new?from=nav"

        # Memory is consumed: a second login goes to the default page
        await other_client.get("/logout")
        again = await other_client.post("/login", data={"username": "alice", "password": "pw"})
        assert again.headers["location"] == "/listings"


class TestLogout:

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, client, signup):
        await signup(client, "alice")

        response = await client.get("/logout")
        assert response.status_code == 302
        assert response.headers["location"] == "/listings"

        gated = await client.get("/listing/new")
        assert gated.headers["location"] == "/login"


class TestSafeRedirectTarget:

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("/listings/abc/edit", "/listings/abc/edit"),
            ("/listing/new?x=1", "/listing/new?x=1"),
            (None, "/listings"),
            ("", "/listings"),
            ("https://evil.example/phish", "/listings"),
            ("//evil.example", "/listings"),
            ("/\\evil.example", "/listings"),
        ],
    )
    def test_only_local_paths_are_followed(self, url, expected):
        assert safe_redirect_target(url) == expected
