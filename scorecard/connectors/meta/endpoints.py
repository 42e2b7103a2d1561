"""Scorecard — Meta API Endpoints.

Fetch functions for the Meta Marketing API resources the scorecard reads.
"""

import json
from typing import Any, Dict, List, Sequence

from scorecard.config import settings
from scorecard.connectors.meta.client import MetaClient
from scorecard.core.logging import get_logger

logger = get_logger("meta.endpoints")


class MetaEndpoints:
    """Daily insights source for one ad account."""

    def __init__(self, client: MetaClient, page_limit: int | None = None):
        self.client = client
        self.ad_account_id = client.ad_account_id
        self.page_limit = page_limit or settings.insights_page_limit

    # ── Daily Insights ──

    async def fetch_daily_insights(
        self,
        fields: Sequence[str],
        level: str,
        since: str,
        until: str,
        filtering: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        """Fetch insights for [since, until] broken down by day."""
        url = f"{self.client.base_url}/{self.ad_account_id}/insights"
        params = {
            "fields": ",".join(fields),
            "level": level,
            "time_range": json.dumps({"since": since, "until": until}),
            "time_increment": "1",
            "filtering": json.dumps(filtering),
            "limit": str(self.page_limit),
        }
        data = await self.client._paginated_get(url, params)
        logger.info(
            f"Fetched {len(data)} daily {level} insight records ({since} → {until})"
        )
        return data

    async def close(self) -> None:
        await self.client.close()
