"""Tests for the Supabase PostgREST client."""

from unittest.mock import patch

import httpx
import pytest

from airdrop_checker.config import SupabaseConfig
from airdrop_checker.models import AirdropStatus
from airdrop_checker.supabase import SupabaseClient, parse_content_range

SUGGESTION_ROW = {
    "id": 7,
    "project_name": "Zeta",
    "description": "A new layer-2 rollup project",
    "official_link": "https://zeta.example",
    "user_email": None,
    "criteria_notes": None,
    "processed": False,
    "created_at": "2026-10-17T09:05:03+00:00",
}


class TestParseContentRange:
    @pytest.mark.parametrize(
        "header,expected",
        [("0-24/25", 25), ("*/0", 0), ("0-9/*", None), (None, None), ("garbage", None)],
    )
    def test_parse(self, header, expected):
        assert parse_content_range(header) == expected


class TestSupabaseClient:
    """Test table reads and writes."""

    @pytest.fixture
    def client(self, supabase_config):
        return SupabaseClient(supabase_config)

    @pytest.mark.asyncio
    async def test_create_suggestion(self, client, suggestion, mock_http, mock_response):
        mock_http.request.return_value = mock_response(201, json_data=[SUGGESTION_ROW])

        with patch("httpx.AsyncClient", return_value=mock_http):
            record = await client.create_suggestion(suggestion)

        assert record.id == 7
        assert record.project_name == "Zeta"
        method, url = mock_http.request.call_args.args
        kwargs = mock_http.request.call_args.kwargs
        assert method == "POST"
        assert url == "https://test-project.supabase.co/rest/v1/airdrop_suggestions"
        assert kwargs["json"] == [
            {
                "project_name": "Zeta",
                "description": "A new layer-2 rollup project",
                "official_link": "https://zeta.example",
                "user_email": None,
                "criteria_notes": None,
            }
        ]
        headers = kwargs["headers"]
        assert headers["apikey"] == "test-anon-key"
        assert headers["Authorization"] == "Bearer test-anon-key"
        assert headers["Prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_create_suggestion_error_status(self, client, suggestion, mock_http, mock_response):
        mock_http.request.return_value = mock_response(409, text="conflict")

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.create_suggestion(suggestion) is None

    @pytest.mark.asyncio
    async def test_create_suggestion_empty_representation(
        self, client, suggestion, mock_http, mock_response
    ):
        mock_http.request.return_value = mock_response(201, json_data=[])

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.create_suggestion(suggestion) is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self, client, suggestion, mock_http):
        mock_http.request.side_effect = httpx.ConnectTimeout("timed out")

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.create_suggestion(suggestion) is None

    @pytest.mark.asyncio
    async def test_unconfigured_makes_no_request(self, suggestion, mock_http):
        client = SupabaseClient(SupabaseConfig())

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.create_suggestion(suggestion) is None
            assert await client.list_airdrops() == []
            assert await client.count_airdrops() == 0

        mock_http.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_active_airdrops(self, client, mock_http, mock_response):
        rows = [
            {"id": 2, "name": "Nebula Swap", "status": "active"},
            {"id": 3, "name": "Orbit Lend", "status": "upcoming"},
        ]
        mock_http.request.return_value = mock_response(200, json_data=rows)

        with patch("httpx.AsyncClient", return_value=mock_http):
            airdrops = await client.list_active_airdrops()

        assert [a.name for a in airdrops] == ["Nebula Swap", "Orbit Lend"]
        params = mock_http.request.call_args.kwargs["params"]
        assert params["status"] == "in.(active,upcoming)"
        assert params["order"] == "created_at.desc"

    @pytest.mark.asyncio
    async def test_list_airdrops_unfiltered(self, client, mock_http, mock_response):
        mock_http.request.return_value = mock_response(200, json_data=[])

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.list_airdrops() == []

        assert "status" not in mock_http.request.call_args.kwargs["params"]

    @pytest.mark.asyncio
    async def test_get_airdrop_by_id(self, client, mock_http, mock_response):
        mock_http.request.return_value = mock_response(
            200, json_data=[{"id": 4, "name": "Pulsar DAO", "status": "active"}]
        )

        with patch("httpx.AsyncClient", return_value=mock_http):
            airdrop = await client.get_airdrop_by_id(4)

        assert airdrop.id == 4
        assert airdrop.status == AirdropStatus.ACTIVE.value
        assert mock_http.request.call_args.kwargs["params"]["id"] == "eq.4"

    @pytest.mark.asyncio
    async def test_get_airdrop_by_id_missing(self, client, mock_http, mock_response):
        mock_http.request.return_value = mock_response(200, json_data=[])

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.get_airdrop_by_id(99) is None

    @pytest.mark.asyncio
    async def test_update_and_delete_airdrop(self, client, mock_http, mock_response):
        mock_http.request.return_value = mock_response(
            200, json_data=[{"id": 4, "status": "ended"}]
        )

        with patch("httpx.AsyncClient", return_value=mock_http):
            updated = await client.update_airdrop(4, {"status": "ended"})
            assert mock_http.request.call_args.args[0] == "PATCH"

            mock_http.request.return_value = mock_response(204)
            deleted = await client.delete_airdrop(4)
            assert mock_http.request.call_args.args[0] == "DELETE"

        assert updated.status == "ended"
        assert deleted is True

    @pytest.mark.asyncio
    async def test_count_airdrops(self, client, mock_http, mock_response):
        mock_http.request.return_value = mock_response(200, headers={"Content-Range": "0-3/4"})

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.count_airdrops() == 4

        assert mock_http.request.call_args.args[0] == "HEAD"
        assert mock_http.request.call_args.kwargs["headers"]["Prefer"] == "count=exact"

    @pytest.mark.asyncio
    async def test_count_airdrops_by_status(self, client, mock_http, mock_response):
        rows = [{"status": "active"}, {"status": "active"}, {"status": "ended"}, {"status": "bogus"}]
        mock_http.request.return_value = mock_response(200, json_data=rows)

        with patch("httpx.AsyncClient", return_value=mock_http):
            counts = await client.count_airdrops_by_status()

        assert counts == {"active": 2, "upcoming": 0, "ended": 1}

    @pytest.mark.asyncio
    async def test_mark_suggestion_processed(self, client, mock_http, mock_response):
        row = dict(SUGGESTION_ROW, processed=True)
        mock_http.request.return_value = mock_response(200, json_data=[row])

        with patch("httpx.AsyncClient", return_value=mock_http):
            record = await client.mark_suggestion_processed(7)

        assert record.processed is True
        kwargs = mock_http.request.call_args.kwargs
        assert kwargs["json"] == {"processed": True}
        assert kwargs["params"] == {"id": "eq.7"}

    @pytest.mark.asyncio
    async def test_list_suggestions(self, client, mock_http, mock_response):
        mock_http.request.return_value = mock_response(200, json_data=[SUGGESTION_ROW])

        with patch("httpx.AsyncClient", return_value=mock_http):
            suggestions = await client.list_suggestions()

        assert len(suggestions) == 1
        assert suggestions[0].official_link == "https://zeta.example"

    @pytest.mark.asyncio
    async def test_non_json_body_is_a_failure(self, client, suggestion, mock_http, mock_response):
        """A 2xx HTML page (proxy, captive portal) yields failure values."""
        response = mock_response(200, text="<html>")
        response.json.side_effect = ValueError("Expecting value")
        mock_http.request.return_value = response

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.list_airdrops() == []
            assert await client.get_airdrop_by_id(1) is None
            assert await client.create_suggestion(suggestion) is None
            assert await client.list_suggestions() == []
            assert await client.mark_suggestion_processed(1) is None
            assert await client.count_airdrops_by_status() == {
                "active": 0,
                "upcoming": 0,
                "ended": 0,
            }

    @pytest.mark.asyncio
    async def test_non_list_body_is_a_failure(self, client, mock_http, mock_response):
        mock_http.request.return_value = mock_response(200, json_data={"message": "ok"})

        with patch("httpx.AsyncClient", return_value=mock_http):
            assert await client.list_airdrops() == []
