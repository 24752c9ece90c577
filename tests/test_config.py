"""Tests for AdapterConfig."""

import pytest
from pydantic import ValidationError

from redis_policy_adapter import AdapterConfig
from redis_policy_adapter.config import DEFAULT_KEY


class TestAdapterConfig:
    def test_defaults(self):
        config = AdapterConfig()
        assert config.network == "tcp"
        assert config.address == "127.0.0.1:6379"
        assert config.key == DEFAULT_KEY == "casbin_rules"

    def test_tcp_client_kwargs(self):
        kwargs = AdapterConfig(address="redis.local:6380", db=3).client_kwargs()
        assert kwargs == {"db": 3, "socket_timeout": None, "host": "redis.local", "port": 6380}

    def test_credentials_only_when_set(self):
        kwargs = AdapterConfig(username="svc", password="pw").client_kwargs()
        assert kwargs["username"] == "svc"
        assert kwargs["password"] == "pw"

    def test_password_without_username(self):
        kwargs = AdapterConfig(password="pw").client_kwargs()
        assert "username" not in kwargs
        assert kwargs["password"] == "pw"

    def test_unix_socket(self):
        kwargs = AdapterConfig(network="unix", address="/tmp/redis.sock").client_kwargs()
        assert kwargs["unix_socket_path"] == "/tmp/redis.sock"
        assert "host" not in kwargs

    @pytest.mark.parametrize("address", ["localhost", ":6379", "localhost:port"])
    def test_bad_tcp_address(self, address):
        with pytest.raises(ValidationError):
            AdapterConfig(address=address)

    def test_unknown_network(self):
        with pytest.raises(ValidationError):
            AdapterConfig(network="udp")

    def test_empty_key(self):
        with pytest.raises(ValidationError):
            AdapterConfig(key="")

    def test_extra_fields_rejected(self):
        with pytest.raises(ValidationError):
            AdapterConfig(hostname="x")

    def test_with_options_revalidates(self):
        config = AdapterConfig().with_options(key="rules", password="pw")
        assert config.key == "rules"
        assert config.password == "pw"
        with pytest.raises(ValidationError):
            AdapterConfig().with_options(address="nope")

    def test_from_json(self):
        config = AdapterConfig.model_validate_json('{"address": "10.0.0.5:6379", "key": "authz"}')
        assert config.address == "10.0.0.5:6379"
        assert config.key == "authz"
