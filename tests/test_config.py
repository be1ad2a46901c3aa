"""Tests for Config loading and validation."""

import os
from decimal import Decimal
from unittest.mock import patch

import pytest

from a402.core.config import DEFAULT_CONTENT_REF, Config
from a402.core.contract import APERTUM_CHAIN_ID, DEFAULT_VERIFIER_CONTRACT, ZERO_ADDRESS
from conftest import CREATOR


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("A402_"):
            monkeypatch.delenv(name)


class TestDefaults:
    """Defaults follow the reference deployment."""

    def test_defaults(self):
        config = Config()
        assert config.chain_id == APERTUM_CHAIN_ID == 2786
        assert config.caip2 == "eip155:2786"
        assert config.currency == "APTM"
        assert config.verifier_contract == DEFAULT_VERIFIER_CONTRACT
        assert config.creator_address == ZERO_ADDRESS
        assert config.price == "0.001"
        assert config.price_wei == 10**15
        assert config.resource_id == "video-001"
        assert config.lifetime_access is True
        assert config.content_ref == DEFAULT_CONTENT_REF
        assert config.storage_backend == "memory"

    def test_from_env_without_variables(self):
        assert Config.from_env() == Config()


class TestFromEnv:
    """Tests for environment loading."""

    def test_reads_variables(self):
        env = {
            "A402_RPC_URL": "https://a.example/rpc,https://b.example/rpc",
            "A402_PAYMENT_ADDRESS": CREATOR,
            "A402_PRICE": "0.25",
            "A402_RESOURCE_ID": "course-7",
            "A402_CONTENT_REF": "ipfs://bafyabc",
            "A402_LIFETIME_ACCESS": "false",
            "A402_IPFS_GATEWAY": "https://gw.example/",
            "A402_RPC_TIMEOUT": "2.5",
            "A402_RPC_MAX_ATTEMPTS": "5",
            "A402_STORAGE_BACKEND": "redis",
            "A402_REDIS_URL": "redis://cache:6379/2",
            "A402_REQUIRE_RESOURCE_MATCH": "yes",
        }
        with patch.dict(os.environ, env):
            config = Config.from_env()

        assert config.rpc_urls == ["https://a.example/rpc", "https://b.example/rpc"]
        assert config.creator_address == CREATOR
        assert config.price_wei == 25 * 10**16
        assert config.resource_id == "course-7"
        assert config.content_ref == "ipfs://bafyabc"
        assert config.lifetime_access is False
        assert config.ipfs_gateway == "https://gw.example"
        assert config.rpc_timeout == 2.5
        assert config.rpc_max_attempts == 5
        assert config.storage_backend == "redis"
        assert config.redis_url == "redis://cache:6379/2"
        assert config.require_resource_match is True

    @pytest.mark.parametrize(
        "env,expected",
        [
            ({"A402_VIDEO_URL": "https://cdn.example/a.mp4"}, "https://cdn.example/a.mp4"),
            ({"A402_YOUTUBE_VIDEO_ID": "abcdefghijk"}, "abcdefghijk"),
            (
                {"A402_CONTENT_REF": "ipfs://x", "A402_VIDEO_URL": "https://cdn.example/a.mp4"},
                "ipfs://x",
            ),
        ],
    )
    def test_content_ref_precedence(self, env, expected):
        with patch.dict(os.environ, env):
            assert Config.from_env().content_ref == expected

    def test_overrides_win(self):
        with patch.dict(os.environ, {"A402_PRICE": "1"}):
            config = Config.from_env(price=Decimal("0.5"), lifetime_access=False)
        assert config.price == "0.5"
        assert config.lifetime_access is False

    @pytest.mark.parametrize(
        "overrides",
        [{"rpc_timeout": 0}, {"rpc_max_attempts": 0}, {"rpc_url": ""}, {"price": "0"}],
    )
    def test_falsy_override_is_validated(self, overrides):
        env = {"A402_RPC_TIMEOUT": "5", "A402_RPC_MAX_ATTEMPTS": "2", "A402_PRICE": "1"}
        with patch.dict(os.environ, env):
            with pytest.raises(ValueError):
                Config.from_env(**overrides)

    def test_falsy_override_kept(self):
        with patch.dict(os.environ, {"A402_REQUIRE_RESOURCE_MATCH": "true", "A402_CONTENT_REF": "abc"}):
            config = Config.from_env(require_resource_match=False, content_ref="")
        assert config.require_resource_match is False
        assert config.content_ref == ""


class TestValidation:
    """Tests for __post_init__ validation."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"rpc_url": ""},
            {"resource_id": ""},
            {"verifier_contract": "0x1234"},
            {"creator_address": "not-an-address"},
            {"price": "abc"},
            {"price": "-1"},
            {"price": "0"},
            {"rpc_timeout": 0},
            {"rpc_max_attempts": 0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            Config(**kwargs)

    def test_with_updates(self):
        config = Config().with_updates(price="2", resource_id="other")
        assert config.price_wei == 2 * 10**18
        assert config.resource_id == "other"

    def test_with_updates_validates(self):
        with pytest.raises(ValueError):
            Config().with_updates(price="nope")

    def test_masked_rpc_url(self):
        config = Config(rpc_url="https://rpc.example/ext/bc/SECRET/rpc")
        assert config.masked_rpc_url() == "https://rpc.example/..."
        assert "SECRET" not in config.masked_rpc_url()
