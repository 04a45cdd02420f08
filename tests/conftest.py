import asyncio
import sys
from pathlib import Path

import pytest

# Ensure root path is available for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from debrid_search.config import Settings  # noqa: E402
from debrid_search.errors import AuthenticationError  # noqa: E402
from debrid_search.models import (  # noqa: E402
    RawListing,
    TorrentContainer,
    Video,
    VideoInfo,
)
from debrid_search.services.cache import TTLCache  # noqa: E402
from debrid_search.services.providers import load_provider_profiles  # noqa: E402


class FakeProvider:
    """In-memory debrid client: listings plus per-id container details."""

    def __init__(self, listings=None, containers=None, *, fail_ids=(), delay=0.0):
        self.listings = list(listings or [])
        self.containers = dict(containers or {})
        self.fail_ids = set(fail_ids)
        self.delay = delay
        self.detail_calls: list[str] = []
        self.unrestrict_calls: list[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_account_items(self, api_key):
        return list(self.listings)

    async def get_details(self, api_key, item_id):
        self.detail_calls.append(item_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if item_id in self.fail_ids:
                raise RuntimeError(f"details unavailable for {item_id}")
            return self.containers[item_id]
        finally:
            self.in_flight -= 1

    async def unrestrict_url(self, api_key, *args):
        self.unrestrict_calls.append(args)
        return f"https://direct.example/{args[-1] if args[-1] else args[0]}"


class BulkFakeProvider(FakeProvider):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.bulk_calls: list[list[str]] = []

    async def bulk_get_details(self, api_key, item_ids):
        self.bulk_calls.append(list(item_ids))
        return {item_id: self.containers[item_id] for item_id in item_ids if item_id in self.containers}


class RejectingProvider(FakeProvider):
    async def get_details(self, api_key, item_id):
        raise AuthenticationError("invalid API key", provider="RealDebrid")


def make_video(name, *, size=1_000_000_000, season=None, episode=None, url=None):
    info = VideoInfo(season=season, episode=episode) if season or episode else None
    return Video(name=name, url=url or f"https://host.example/{name}", size=size, info=info)


def make_container(item_id, name, videos, *, source="RealDebrid", year=None):
    return TorrentContainer(
        id=item_id,
        container_name=name,
        source=source,
        videos=list(videos),
        info=VideoInfo(year=year) if year else None,
        size=sum(video.size for video in videos),
    )


def make_listing(item_id, name, *, size=1_000_000_000, source="RealDebrid"):
    return RawListing(id=item_id, name=name, size=size, source=source)


@pytest.fixture
def cache():
    return TTLCache()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def profiles():
    return load_provider_profiles()


@pytest.fixture
def provider_factory():
    """FakeProvider, BulkFakeProvider and RejectingProvider by short name."""
    return {"plain": FakeProvider, "bulk": BulkFakeProvider, "rejecting": RejectingProvider}


@pytest.fixture
def video_factory():
    return make_video


@pytest.fixture
def container_factory():
    return make_container


@pytest.fixture
def listing_factory():
    return make_listing
