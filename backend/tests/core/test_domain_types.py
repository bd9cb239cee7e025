"""Domain Types: verifies StoreOptions defaults, merging and lookup validation.

Tests:
    - index_name defaults to key + "s"
    - merged() applies only non-None overrides and never mutates the original
    - Lookup mappings validate into LookupSpec values; bad mappings raise ConfigError
"""

import pytest

from recordstore.core.domain_types import (
    LookupSpec, StoreOptions, resolve_lookups,
)
from recordstore.core.errors import ConfigError


def test_index_name_defaults_to_plural_key():
    assert StoreOptions(key="haiku").index_name == "haikus"


def test_explicit_index_name_is_kept():
    assert StoreOptions.build("haiku", "poems").index_name == "poems"


def test_store_key_is_required():
    with pytest.raises(ConfigError):
        StoreOptions(key="")


def test_merged_applies_non_none_overrides():
    base = StoreOptions(key="thing", expire=60)
    merged = base.merged(no_index=True, expire=None)
    assert merged.no_index is True
    assert merged.expire == 60
    assert base.no_index is False


def test_merged_without_overrides_returns_same_options():
    base = StoreOptions(key="thing")
    assert base.merged(no_lookup=None) is base


def test_resolve_lookups_preserves_order():
    specs = resolve_lookups({"user": "userId", "haiku": "haikuId"})
    assert specs == (LookupSpec("user", "userId"), LookupSpec("haiku", "haikuId"))


def test_resolve_lookups_accepts_none():
    assert resolve_lookups(None) == ()


@pytest.mark.parametrize("lookups", [
    {"": "userId"},
    {"user": ""},
    {"user": 3},
    {"scan": "scanField"},
    {"count": "n"},
])
def test_invalid_lookup_mapping_raises_config_error(lookups):
    with pytest.raises(ConfigError) as exc:
        resolve_lookups(lookups)
    assert exc.value.setting == "lookups"
