"""HTTP client for the asset service's scoped batch-resolve endpoint."""

import logging
from typing import Dict, Iterable, List
from urllib.parse import quote

import httpx

from pagewright.models.document import as_list, as_record, read_string

logger = logging.getLogger(__name__)

TIMEOUT = 10  # seconds
MAX_BATCH_SIZE = 500


class HttpAssetStore:
    """Resolve asset ids to public URLs through the asset service.

    The service is asked only about ids within the given tenant/project, and
    any item it returns for an id that was not requested is ignored.
    """

    def __init__(self, base_url: str, timeout: float = TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _endpoint(self, project_id: str) -> str:
        return f"{self.base_url}/projects/{quote(project_id, safe='')}/assets/resolve"

    async def resolve(self, tenant_id: str, project_id: str, asset_ids: Iterable[str]) -> Dict[str, str]:
        """Return ``{asset_id: public_url}`` for the ids that exist in the project.

        Raises:
            httpx.HTTPError: on network or HTTP errors.
        """
        requested: List[str] = sorted({a.strip() for a in asset_ids if a and a.strip()})
        if not requested:
            return {}

        resolved: Dict[str, str] = {}
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for start in range(0, len(requested), MAX_BATCH_SIZE):
                batch = requested[start:start + MAX_BATCH_SIZE]
                response = await client.post(
                    self._endpoint(project_id),
                    json={"assetIds": batch},
                    headers={"X-Tenant-Id": tenant_id},
                )
                response.raise_for_status()
                resolved.update(_parse_items(response.json(), set(batch)))

        logger.info(
            "Resolved %d of %d assets", len(resolved), len(requested),
            extra={"tenant_id": tenant_id, "project_id": project_id},
        )
        return resolved


def _parse_items(payload: object, requested: set) -> Dict[str, str]:
    """Read ``{"data": {"items": [{"assetId", "publicUrl"}]}}`` (or a bare ``items``)."""
    record = as_record(payload) or {}
    data = as_record(record.get("data")) or record
    out: Dict[str, str] = {}
    for item in as_list(data.get("items")):
        entry = as_record(item) or {}
        asset_id = read_string(entry.get("assetId")).strip()
        url = read_string(entry.get("publicUrl")).strip()
        if asset_id in requested and url:
            out[asset_id] = url
    return out
