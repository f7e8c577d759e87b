"""
Summary Fetcher

Fetches the summary table from the primary miners endpoint, falling back
to the previous summary endpoint on any failure.
"""

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from subnetdash.core.setup import logger
from subnetdash.src.summary.config import SummaryConfig
from subnetdash.src.summary.models import MinersResponse, SummaryTable
from subnetdash.src.summary.transform import parse_summary_payload, transform_miners_to_summary
from subnetdash.utils.api_client import APIClient
from subnetdash.utils.errors import SubnetDashError, ValidationError


class SummaryFetcher:
    """Primary/fallback summary source."""

    def __init__(
        self,
        primary_url: Optional[str] = None,
        fallback_url: Optional[str] = None,
    ):
        self.primary_url = primary_url or SummaryConfig.PRIMARY_URL
        self.fallback_url = fallback_url or SummaryConfig.FALLBACK_URL

    async def fetch(self, client: APIClient) -> SummaryTable:
        """Fetch one snapshot.

        Args:
            client: APIClient to issue requests with

        Returns:
            SummaryTable from the primary endpoint, or from the fallback

        Raises:
            SubnetDashError: The fallback's error when both endpoints fail
        """
        try:
            data = await client.get_json(self.primary_url)
            return transform_miners_to_summary(self._validate_miners(data))
        except SubnetDashError as primary_error:
            logger.warning(f"Primary summary source failed, trying fallback: {primary_error}")

        data = await client.get_json(self.fallback_url)
        table = parse_summary_payload(data, source=self.fallback_url)
        logger.debug(f"Fetched fallback summary: {len(table.columns)} columns, {len(table.rows)} rows")
        return table

    def _validate_miners(self, data) -> MinersResponse:
        if not isinstance(data, dict):
            raise ValidationError(f"Expected a JSON object, got {type(data).__name__}", self.primary_url)
        try:
            return MinersResponse.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Malformed miners payload: {e.error_count()} validation error(s)", self.primary_url)


def load_summary_file(path: str) -> SummaryTable:
    """Load a saved summary (or miners) JSON payload from disk.

    Raises:
        ValidationError: If the file is not valid JSON or has neither shape
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}", path)
    return parse_summary_payload(data, source=path)
