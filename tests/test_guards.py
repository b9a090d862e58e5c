"""
Wanderlust Backend - Request Context & Guard Unit Tests
========================================================

Guards run against a hand-built Starlette Request (with an in-memory
session) and a mocked AsyncSession; services are patched where a guard
looks something up.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from starlette.requests import Request

from wanderlust.context import RequestContext, get_request_context
from wanderlust.exceptions import GuardRedirect
from wanderlust.guards import require_listing_owner, require_login, require_review_author
from wanderlust.models.listing import Listing
from wanderlust.models.review import Review
from wanderlust.models.user import User
from wanderlust.services.listing_service import listing_service
from wanderlust.services.review_service import review_service


def make_request(path: str = "/", query: bytes = b"", session=None) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("testserver", 80),
        "path": path,
        "query_string": query,
        "headers": [],
        "session": {} if session is None else session,
    })


def make_user(name: str = "alice") -> User:
    return User(id=uuid.uuid4(), username=name, email=f"{name}@example.com", password_hash="x")


class TestRequestContext:

    def test_flashes_are_grouped_and_consumed(self, mock_db_session):
        ctx = RequestContext(request=make_request(), db=mock_db_session)
        ctx.flash("success", "Saved")
        ctx.flash("error", "Nope")
        ctx.flash("success", "Again")

        assert ctx.pop_flashes() == {"success": ["Saved", "Again"], "error": ["Nope"]}
        assert ctx.pop_flashes() == {"success": [], "error": []}

    def test_login_regenerates_session(self, mock_db_session):
        request = make_request(session={"redirect_url": "/listing/new", "_flashes": [["error", "x"]]})
        ctx = RequestContext(request=request, db=mock_db_session, redirect_url="/listing/new")
        user = make_user()

        ctx.login(user)

        assert request.session == {"user_id": str(user.id)}
        assert ctx.user is user
        assert ctx.redirect_url is None

    def test_logout_drops_identity(self, mock_db_session):
        user = make_user()
        request = make_request(session={"user_id": str(user.id)})
        ctx = RequestContext(request=request, db=mock_db_session, user=user)

        ctx.logout()

        assert "user_id" not in request.session
        assert not ctx.is_authenticated

    @pytest.mark.asyncio
    async def test_context_loads_signed_in_user(self, mock_db_session):
        user = make_user()
        mock_db_session.get.return_value = user
        request = make_request(session={"user_id": str(user.id), "redirect_url": "/x"})

        ctx = await get_request_context(request, mock_db_session)

        assert ctx.user is user
        assert ctx.redirect_url == "/x"
        mock_db_session.get.assert_awaited_once_with(User, user.id)

    @pytest.mark.asyncio
    async def test_deleted_user_counts_as_signed_out(self, mock_db_session):
        mock_db_session.get.return_value = None
        request = make_request(session={"user_id": str(uuid.uuid4())})

        ctx = await get_request_context(request, mock_db_session)

        assert ctx.user is None
        assert "user_id" not in request.session

    @pytest.mark.asyncio
    async def test_garbage_user_id_counts_as_signed_out(self, mock_db_session):
        request = make_request(session={"user_id": "not-a-uuid"})

        ctx = await get_request_context(request, mock_db_session)

        assert ctx.user is None
        mock_db_session.get.assert_not_awaited()


class TestRequireLogin:

    @pytest.mark.asyncio
    async def test_authenticated_passes_through(self, mock_db_session):
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=make_user())
        assert await require_login(ctx) is ctx

    @pytest.mark.asyncio
    async def test_anonymous_is_redirected_and_path_remembered(self, mock_db_session):
        request = make_request("/listings/abc/edit", b"tab=photos")
        ctx = RequestContext(request=request, db=mock_db_session)

        with pytest.raises(GuardRedirect) as exc_info:
            await require_login(ctx)

        assert exc_info.value.location == "/login"
        assert request.session["redirect_url"] == "/listings/abc/edit?tab=photos"
        assert ctx.pop_flashes()["error"] == ["You must be logged in to do that!"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query, remembered", [
        (b"_method=DELETE", "/listings/abc"),
        (b"tab=photos&_method=PUT", "/listings/abc?tab=photos"),
    ])
    async def test_method_override_not_remembered(self, mock_db_session, query, remembered):
        request = make_request("/listings/abc", query)
        ctx = RequestContext(request=request, db=mock_db_session)

        with pytest.raises(GuardRedirect):
            await require_login(ctx)

        assert request.session["redirect_url"] == remembered


class TestRequireListingOwner:

    @pytest.mark.asyncio
    async def test_owner_gets_listing(self, mock_db_session):
        owner = make_user()
        listing = Listing(id=uuid.uuid4(), title="Hut", owner_id=owner.id)
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=owner)

        with patch.object(listing_service, "get_listing", AsyncMock(return_value=listing)):
            assert await require_listing_owner(listing.id, ctx) is listing

    @pytest.mark.asyncio
    async def test_missing_listing_redirects_to_index(self, mock_db_session):
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=make_user())

        with patch.object(listing_service, "get_listing", AsyncMock(return_value=None)):
            with pytest.raises(GuardRedirect) as exc_info:
                await require_listing_owner(uuid.uuid4(), ctx)

        assert exc_info.value.location == "/listings"
        assert ctx.pop_flashes()["error"] == ["Listing not found!"]

    @pytest.mark.asyncio
    async def test_other_user_redirected_to_detail(self, mock_db_session):
        listing = Listing(id=uuid.uuid4(), title="Hut", owner_id=uuid.uuid4())
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=make_user("mallory"))

        with patch.object(listing_service, "get_listing", AsyncMock(return_value=listing)):
            with pytest.raises(GuardRedirect) as exc_info:
                await require_listing_owner(listing.id, ctx)

        assert exc_info.value.location == f"/listings/{listing.id}"
        assert ctx.pop_flashes()["error"] == ["You don't have permission to edit this listing."]

    @pytest.mark.asyncio
    async def test_ownerless_listing_belongs_to_nobody(self, mock_db_session):
        listing = Listing(id=uuid.uuid4(), title="Seeded", owner_id=None)
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=make_user())

        with patch.object(listing_service, "get_listing", AsyncMock(return_value=listing)):
            with pytest.raises(GuardRedirect):
                await require_listing_owner(listing.id, ctx)


class TestRequireReviewAuthor:

    @pytest.mark.asyncio
    async def test_author_gets_review(self, mock_db_session):
        author = make_user()
        listing_id = uuid.uuid4()
        review = Review(id=uuid.uuid4(), listing_id=listing_id, author_id=author.id, rating=5, comment="ok")
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=author)

        with patch.object(review_service, "get_review", AsyncMock(return_value=review)):
            assert await require_review_author(listing_id, review.id, ctx) is review

    @pytest.mark.asyncio
    async def test_non_author_redirected(self, mock_db_session):
        listing_id = uuid.uuid4()
        review = Review(id=uuid.uuid4(), listing_id=listing_id, author_id=uuid.uuid4(), rating=5, comment="ok")
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=make_user("mallory"))

        with patch.object(review_service, "get_review", AsyncMock(return_value=review)):
            with pytest.raises(GuardRedirect) as exc_info:
                await require_review_author(listing_id, review.id, ctx)

        assert exc_info.value.location == f"/listings/{listing_id}"
        assert ctx.pop_flashes()["error"] == ["You don't have permission to do that"]

    @pytest.mark.asyncio
    async def test_missing_review_redirected(self, mock_db_session):
        listing_id = uuid.uuid4()
        ctx = RequestContext(request=make_request(), db=mock_db_session, user=make_user())

        with patch.object(review_service, "get_review", AsyncMock(return_value=None)):
            with pytest.raises(GuardRedirect) as exc_info:
                await require_review_author(listing_id, uuid.uuid4(), ctx)

        assert exc_info.value.location == f"/listings/{listing_id}"
        assert ctx.pop_flashes()["error"] == ["Review not found"]
