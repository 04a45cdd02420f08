# debrid_search/services/providers.py

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml

from ..models import RawListing, TorrentContainer

DEFAULT_PROFILES_PATH = Path(__file__).resolve().parent.parent / "providers.yaml"
RESOLVE_STRATEGIES = {"unrestrict", "unrestrict_with_ip", "unrestrict_item", "passthrough"}
UNKNOWN_LABEL = "Unknown"

_profiles_cache: dict[Path, dict[str, ProviderProfile]] = {}


@runtime_checkable
class ProviderClient(Protocol):
    """What the pipeline needs from a debrid provider's REST client."""

    async def list_account_items(self, api_key: str) -> Sequence[RawListing]: ...

    async def get_details(self, api_key: str, item_id: str) -> TorrentContainer: ...

    async def unrestrict_url(self, api_key: str, *args: Any) -> str: ...


def supports_bulk(client: object) -> bool:
    return callable(getattr(client, "bulk_get_details", None))


@dataclass(frozen=True)
class ProviderProfile:
    name: str
    label: str
    bulk_details: bool = False
    resolve: str = "passthrough"


def load_provider_profiles(
    config_path: Path = DEFAULT_PROFILES_PATH,
) -> dict[str, ProviderProfile]:
    """
    Loads and validates provider profiles from YAML.

    Parsed files are cached per resolved path, so repeated lookups do not
    touch the disk.
    """
    resolved_path = config_path.resolve()
    cached = _profiles_cache.get(resolved_path)
    if cached is not None:
        return cached

    if not resolved_path.exists():
        raise FileNotFoundError(f"Provider profiles not found: {resolved_path}")

    with resolved_path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    profiles: dict[str, ProviderProfile] = {}
    for name, raw in (data.get("providers") or {}).items():
        missing = {"label", "resolve"} - set(raw or {})
        if missing:
            raise ValueError(
                f"Provider profile '{name}' missing keys: {', '.join(sorted(missing))}"
            )
        if raw["resolve"] not in RESOLVE_STRATEGIES:
            raise ValueError(f"Provider profile '{name}' has unknown resolve strategy: {raw['resolve']}")
        profiles[name] = ProviderProfile(
            name=name,
            label=raw["label"],
            bulk_details=bool(raw.get("bulk_details", False)),
            resolve=raw["resolve"],
        )

    _profiles_cache[resolved_path] = profiles
    return profiles


def provider_label(profiles: Mapping[str, ProviderProfile], source: str | None) -> str:
    profile = profiles.get(source or "")
    return profile.label if profile else UNKNOWN_LABEL
