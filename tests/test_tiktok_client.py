"""
Tests for the TikTok API client against a mocked transport.
"""
import json
import pytest
import httpx
from urllib.parse import urlparse, parse_qs

from affiliate_outreach.core.exceptions import (
    AuthUnavailableError,
    ChannelUnavailableError,
    ExternalServiceError,
)
from affiliate_outreach.schemas.creator import CreatorFilter
from affiliate_outreach.services.integrations.tiktok import TikTokAPIClient, TikTokConfig, is_success


def make_client(handler, access_token="tok"):
    config = TikTokConfig(app_id="app-1", app_secret="s3cret", redirect_uri="http://localhost:8000/oauth-callback")
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TikTokAPIClient(config, access_token, client=http)


class TestSuccessCheck:

    def test_business_codes(self):
        assert is_success({"code": 0, "data": {}})
        assert not is_success({"code": 40001, "message": "Access token invalid"})

    def test_creator_api_error_envelope(self):
        assert is_success({"data": {}, "error": {"code": "ok"}})
        assert not is_success({"error": {"code": "access_token_invalid"}})

    def test_non_object(self):
        assert not is_success(["x"])

    def test_missing_status_is_not_success(self):
        assert not is_success({})
        assert not is_success({"data": {"invite_id": "1"}})


class TestRequests:

    @pytest.mark.asyncio
    async def test_marketplace_search_payload_and_headers(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["token"] = request.headers.get("Access-Token")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"code": 0, "data": {"creators": [{"creator_id": "1"}]}})

        client = make_client(handler)
        filters = CreatorFilter(min_followers=10000, max_followers=100000, category="electronics", min_gmv=1000)

        creators = await client.search_creators(filters)

        assert creators == [{"creator_id": "1"}]
        assert seen["url"].endswith("/tcm/creator/search")
        assert seen["token"] == "tok"
        assert seen["body"]["filters"]["follower_count_min"] == 10000
        assert seen["body"]["filters"]["region"] == ["GB", "UK"]
        assert seen["body"]["filters"]["category"] == ["electronics"]

    @pytest.mark.asyncio
    async def test_creator_api_uses_bearer(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"data": {}, "error": {"code": "ok"}})

        await make_client(handler).send_direct_message("c1", "hello", "Digi4u Repair UK")

        assert seen["auth"] == "Bearer tok"

    @pytest.mark.asyncio
    async def test_non_zero_code_is_channel_unavailable(self):
        def handler(request):
            return httpx.Response(200, json={"code": 40100, "message": "No permission"})

        with pytest.raises(ChannelUnavailableError, match="No permission"):
            await make_client(handler).send_collaboration_invite("c1", "hi", {})

    @pytest.mark.asyncio
    async def test_http_error_is_channel_unavailable(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        with pytest.raises(ChannelUnavailableError, match="HTTP 503"):
            await make_client(handler).search_creators_legacy(CreatorFilter())

    @pytest.mark.asyncio
    async def test_transport_error_is_channel_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ChannelUnavailableError):
            await make_client(handler).search_creators(CreatorFilter())

    @pytest.mark.asyncio
    async def test_missing_token(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(AuthUnavailableError):
            await make_client(handler, access_token=None).search_creators(CreatorFilter())


class TestOAuth:

    def test_business_auth_url(self):
        client = make_client(lambda r: httpx.Response(200))
        query = parse_qs(urlparse(client.get_business_auth_url("xyz")).query)

        assert query["app_id"] == ["app-1"]
        assert query["state"] == ["xyz"]
        assert query["redirect_uri"] == ["http://localhost:8000/oauth-callback"]

    def test_creator_auth_url_scopes(self):
        client = make_client(lambda r: httpx.Response(200))
        query = parse_qs(urlparse(client.get_creator_auth_url("xyz")).query)

        assert query["client_key"] == ["app-1"]
        assert "biz.creator.info" in query["scope"][0].split(",")
        assert query["response_type"] == ["code"]

    @pytest.mark.asyncio
    async def test_exchange_code(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"code": 0, "data": {"access_token": "new", "expires_in": 86400}})

        response = await make_client(handler, access_token=None).exchange_code_for_token("auth-code")

        assert response["data"]["access_token"] == "new"
        assert seen["body"] == {"app_id": "app-1", "secret": "s3cret", "auth_code": "auth-code"}

    @pytest.mark.asyncio
    async def test_exchange_failure(self):
        def handler(request):
            return httpx.Response(400, json={"message": "invalid auth_code"})

        with pytest.raises(ExternalServiceError):
            await make_client(handler).exchange_code_for_token("bad")


class TestCheckAccess:

    @pytest.mark.asyncio
    async def test_reports_each_api(self):
        def handler(request: httpx.Request):
            if request.url.path.endswith("/advertiser/info/"):
                return httpx.Response(200, json={"code": 0, "data": {}})
            if request.url.path.endswith("/creator/search"):
                return httpx.Response(200, json={"code": 40001, "message": "denied"})
            return httpx.Response(401, json={})

        access = await make_client(handler).check_access()

        assert access == {"business_api": True, "creator_marketplace": False, "creator_api": False}


class TestMissingStatus:

    @pytest.mark.asyncio
    async def test_invite_without_status_is_channel_unavailable(self):
        def handler(request):
            return httpx.Response(200, json={})

        with pytest.raises(ChannelUnavailableError, match="non-success response code"):
            await make_client(handler).send_collaboration_invite("c1", "hi", {})
