# debrid_search/services/orchestrator.py

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass

from ..config import DEFAULT_CONCURRENCY_LIMIT, logger
from ..errors import AuthenticationError
from ..models import TorrentContainer
from .providers import ProviderClient, supports_bulk


@dataclass(frozen=True)
class Outcome:
    """Result of one detail fetch: exactly one of ``value``/``error`` is set."""

    item_id: str
    value: TorrentContainer | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def run_bounded(item_ids: list[str], fetch, limit: int) -> list[Outcome]:
    """
    Runs ``fetch(item_id)`` for every id with at most ``limit`` calls in flight.

    Each call yields its own Outcome; a failing call never cancels the others.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def worker(item_id: str) -> Outcome:
        async with semaphore:
            try:
                return Outcome(item_id, value=await fetch(item_id))
            except Exception as exc:  # noqa: BLE001
                return Outcome(item_id, error=exc)

    tasks = [asyncio.create_task(worker(item_id)) for item_id in item_ids]
    return list(await asyncio.gather(*tasks))


async def resolve_details(
    candidate_ids: Iterable[str],
    provider: ProviderClient,
    api_key: str,
    *,
    limit: int = DEFAULT_CONCURRENCY_LIMIT,
    use_bulk: bool | None = None,
) -> dict[str, TorrentContainer]:
    """
    Fetches container details for every candidate id.

    Uses the provider's batch endpoint when it has one, otherwise one call
    per id under a concurrency limit. Per-id failures are logged and leave
    the id out of the result; an AuthenticationError aborts the whole batch.
    """
    item_ids = list(dict.fromkeys(str(item_id) for item_id in candidate_ids))
    if not item_ids:
        return {}

    if use_bulk is None:
        use_bulk = supports_bulk(provider)

    if use_bulk and supports_bulk(provider):
        logger.info(f"[ORCHESTRATOR] Bulk fetching details for {len(item_ids)} items")
        details = await provider.bulk_get_details(api_key, item_ids)
        return {str(key): value for key, value in (details or {}).items() if value is not None}

    logger.info(
        f"[ORCHESTRATOR] Fetching details for {len(item_ids)} items, max {limit} concurrent"
    )
    outcomes = await run_bounded(
        item_ids, lambda item_id: provider.get_details(api_key, item_id), limit
    )

    results: dict[str, TorrentContainer] = {}
    for outcome in outcomes:
        if isinstance(outcome.error, AuthenticationError):
            raise outcome.error
        if not outcome.ok:
            logger.warning(
                f"[ORCHESTRATOR] Failed to fetch details for {outcome.item_id}: {outcome.error}"
            )
            continue
        if outcome.value is not None:
            results[outcome.item_id] = outcome.value

    logger.debug(f"[ORCHESTRATOR] Resolved {len(results)}/{len(item_ids)} items")
    return results
