"""App name resolution tests."""
import json

import pytest

from mindease.services import AppIdentityResolver, load_app_names


def test_known_packages_resolve_to_display_names(resolver):
    assert resolver.resolve("com.instagram.android") == "Instagram"
    assert resolver.resolve("com.twitter.android.lite") == "Twitter"
    assert resolver.resolve("com.ss.android.ugc.trill") == "TikTok"
    assert resolver.resolve("com.zhiliaoapp.musically") == "TikTok"


def test_unmapped_identifiers_are_returned_unchanged(resolver):
    assert resolver.resolve("com.unknown.app") == "com.unknown.app"
    assert resolver.resolve("") == ""


def test_resolving_a_display_name_is_stable(resolver):
    name = resolver.resolve("com.whatsapp")
    assert resolver.resolve(name) == name
    assert resolver.resolve("com.whatsapp") == resolver.resolve("com.whatsapp")


def test_configured_table_is_merged_over_defaults(tmp_path):
    path = tmp_path / "names.json"
    path.write_text(json.dumps({"org.telegram.messenger": "Telegram", "com.discord": "Discord Chat"}))

    resolver = AppIdentityResolver.from_config(path)

    assert resolver.resolve("org.telegram.messenger") == "Telegram"
    assert resolver.resolve("com.discord") == "Discord Chat"
    assert resolver.resolve("com.facebook.katana") == "Facebook"


def test_configured_table_must_be_an_object(tmp_path):
    path = tmp_path / "names.json"
    path.write_text(json.dumps(["com.discord"]))

    with pytest.raises(ValueError):
        load_app_names(path)
