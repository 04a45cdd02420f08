import pytest

from debrid_search.services.providers import (
    load_provider_profiles,
    provider_label,
    supports_bulk,
)


def test_bundled_profiles(profiles):
    assert profiles["RealDebrid"].label == "[RD⚡] Intell DebridSearch"
    assert profiles["RealDebrid"].resolve == "unrestrict_with_ip"
    assert profiles["AllDebrid"].bulk_details is True
    assert profiles["TorBox"].resolve == "unrestrict_item"


def test_profiles_are_cached_per_path(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text("providers:\n  Custom:\n    label: Custom\n    resolve: passthrough\n")

    first = load_provider_profiles(path)
    path.write_text("providers: {}\n")

    assert load_provider_profiles(path) is first
    assert first["Custom"].bulk_details is False


def test_missing_keys_are_rejected(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text("providers:\n  Broken:\n    label: Broken\n")

    with pytest.raises(ValueError, match="missing keys: resolve"):
        load_provider_profiles(path)


def test_unknown_strategy_is_rejected(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text("providers:\n  Broken:\n    label: Broken\n    resolve: teleport\n")

    with pytest.raises(ValueError, match="unknown resolve strategy"):
        load_provider_profiles(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_provider_profiles(tmp_path / "absent.yaml")


def test_provider_label_and_bulk_detection(profiles, provider_factory):
    assert provider_label(profiles, "Premiumize") == "[PM⚡] Intell DebridSearch"
    assert provider_label(profiles, None) == "Unknown"
    assert supports_bulk(provider_factory["bulk"]()) is True
    assert supports_bulk(provider_factory["plain"]()) is False
