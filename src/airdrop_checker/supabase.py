"""
Supabase client for airdrop-checker.

Reads and writes the `airdrops` and `airdrop_suggestions` tables through the
project's PostgREST endpoint. Failures are logged and turned into empty
results (None, [], False or 0) so callers never see a raw transport error.

API Documentation: https://postgrest.org/en/stable/references/api.html
"""

import logging
from typing import Any

import httpx

from .config import SupabaseConfig
from .models import AirdropRecord, AirdropStatus, SuggestionInput, SuggestionRecord

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (AirdropStatus.ACTIVE, AirdropStatus.UPCOMING)


def parse_content_range(header: str | None) -> int | None:
    """Total row count from a Content-Range header ("0-24/25" or "*/0")."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1]
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


class SupabaseClient:
    """Client for the tables of one Supabase project."""

    def __init__(self, config: SupabaseConfig):
        self.config = config
        self.timeout = config.timeout_seconds

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.config.anon_key,
            "Authorization": f"Bearer {self.config.anon_key}",
            "Accept-Profile": self.config.schema,
            "Content-Profile": self.config.schema,
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
        action: str,
    ) -> httpx.Response | None:
        """
        Send one PostgREST request.

        Returns the response on a 2xx status, None on any failure.
        """
        if not self.config.is_configured():
            logger.warning(f"Supabase is not configured, cannot {action}")
            return None

        url = f"{self.config.rest_url}/{table}"
        logger.debug(f"{method} {url} params={params}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=self._headers(prefer),
                )
            except httpx.HTTPError as e:
                logger.error(f"Error trying to {action}: {e}")
                return None

        if not 200 <= response.status_code < 300:
            logger.error(
                f"Error trying to {action}: HTTP {response.status_code} {response.text}"
            )
            return None

        return response

    async def _rows(
        self, method: str, table: str, *, action: str, **kwargs: Any
    ) -> list[dict[str, Any]] | None:
        """Send a request and decode its JSON row list. None on any failure."""
        response = await self._request(method, table, action=action, **kwargs)
        if response is None:
            return None

        try:
            rows = response.json()
        except ValueError:
            logger.error(f"Error trying to {action}: response body is not JSON")
            return None

        if not isinstance(rows, list):
            logger.error(f"Error trying to {action}: expected a list of rows")
            return None
        return rows


    # -------------------------------------------------------------------------
    # Airdrops
    # -------------------------------------------------------------------------

    async def list_airdrops(
        self, statuses: list[AirdropStatus | str] | None = None
    ) -> list[AirdropRecord]:
        """
        List airdrops, newest first.

        Args:
            statuses: Only return airdrops in these statuses (all when None)
        """
        params = {"select": "*", "order": "created_at.desc"}
        if statuses:
            values = ",".join(AirdropStatus(s).value for s in statuses)
            params["status"] = f"in.({values})"

        rows = await self._rows(
            "GET",
            self.config.airdrops_table,
            params=params,
            action="fetch airdrops",
        )
        return [AirdropRecord.from_row(row) for row in rows or []]

    async def list_active_airdrops(self) -> list[AirdropRecord]:
        """Airdrops that are active or upcoming."""
        return await self.list_airdrops(list(ACTIVE_STATUSES))

    async def get_airdrop_by_id(self, airdrop_id: Any) -> AirdropRecord | None:
        """Fetch one airdrop, or None when it does not exist."""
        rows = await self._rows(
            "GET",
            self.config.airdrops_table,
            params={"select": "*", "id": f"eq.{airdrop_id}"},
            action=f"fetch airdrop {airdrop_id}",
        )
        if not rows:
            logger.debug(f"Airdrop {airdrop_id} not found")
            return None
        return AirdropRecord.from_row(rows[0])

    async def create_airdrop(self, fields: dict[str, Any]) -> AirdropRecord | None:
        """Insert an airdrop (admin)."""
        rows = await self._rows(
            "POST",
            self.config.airdrops_table,
            json=[fields],
            prefer="return=representation",
            action="add airdrop",
        )
        return AirdropRecord.from_row(rows[0]) if rows else None

    async def update_airdrop(
        self, airdrop_id: Any, updates: dict[str, Any]
    ) -> AirdropRecord | None:
        """Update an airdrop (admin). Returns None if no row matched."""
        rows = await self._rows(
            "PATCH",
            self.config.airdrops_table,
            params={"id": f"eq.{airdrop_id}"},
            json=updates,
            prefer="return=representation",
            action=f"update airdrop {airdrop_id}",
        )
        return AirdropRecord.from_row(rows[0]) if rows else None

    async def delete_airdrop(self, airdrop_id: Any) -> bool:
        """Delete an airdrop (admin)."""
        response = await self._request(
            "DELETE",
            self.config.airdrops_table,
            params={"id": f"eq.{airdrop_id}"},
            action=f"delete airdrop {airdrop_id}",
        )
        return response is not None

    async def count_airdrops(self) -> int:
        """Total number of airdrops."""
        response = await self._request(
            "HEAD",
            self.config.airdrops_table,
            params={"select": "*"},
            prefer="count=exact",
            action="count airdrops",
        )
        if response is None:
            return 0
        return parse_content_range(response.headers.get("Content-Range")) or 0

    async def count_airdrops_by_status(self) -> dict[str, int]:
        """Number of airdrops per status."""
        counts = {status.value: 0 for status in AirdropStatus}

        rows = await self._rows(
            "GET",
            self.config.airdrops_table,
            params={"select": "status"},
            action="count airdrops by status",
        )
        for row in rows or []:
            status = row.get("status")
            if status in counts:
                counts[status] += 1
        return counts

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------

    async def create_suggestion(
        self, suggestion: SuggestionInput
    ) -> SuggestionRecord | None:
        """Store a user suggestion. Returns None unless a row comes back."""
        rows = await self._rows(
            "POST",
            self.config.suggestions_table,
            json=[suggestion.to_row()],
            prefer="return=representation",
            action="submit suggestion",
        )
        if not rows:
            return None
        record = SuggestionRecord.from_row(rows[0])
        logger.info(f"Stored suggestion {record.id} for {record.project_name!r}")
        return record

    async def list_suggestions(self) -> list[SuggestionRecord]:
        """All suggestions, newest first (admin)."""
        rows = await self._rows(
            "GET",
            self.config.suggestions_table,
            params={"select": "*", "order": "created_at.desc"},
            action="fetch suggestions",
        )
        return [SuggestionRecord.from_row(row) for row in rows or []]

    async def mark_suggestion_processed(
        self, suggestion_id: Any
    ) -> SuggestionRecord | None:
        """Flag a suggestion as handled (admin)."""
        rows = await self._rows(
            "PATCH",
            self.config.suggestions_table,
            params={"id": f"eq.{suggestion_id}"},
            json={"processed": True},
            prefer="return=representation",
            action=f"mark suggestion {suggestion_id}",
        )
        return SuggestionRecord.from_row(rows[0]) if rows else None
