# debrid_search/services/metadata/http.py

from typing import Any

import httpx

from ...config import logger
from ...errors import MetadataSourceError

REQUEST_TIMEOUT = 30


def new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=REQUEST_TIMEOUT, follow_redirects=True)


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    source: str,
    headers: dict[str, str] | None = None,
) -> Any:
    """GETs ``url`` and decodes the body, turning transport failures into MetadataSourceError."""
    logger.debug(f"[{source.upper()}] GET {url}")
    try:
        response = await client.get(url, headers=headers)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as exc:
        raise MetadataSourceError(
            f"{source} returned HTTP {exc.response.status_code}", source=source
        ) from exc
    except httpx.HTTPError as exc:
        raise MetadataSourceError(f"{source} request failed: {exc}", source=source) from exc
    except ValueError as exc:
        raise MetadataSourceError(f"{source} sent invalid JSON", source=source) from exc
