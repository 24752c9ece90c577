# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""Connection configuration for the Redis-backed adapter.

The model can be built directly, from a dict (``model_validate``) or from
JSON (``model_validate_json``), e.g. when settings come from a config file.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_KEY = "casbin_rules"


class AdapterConfig(BaseModel):
    """Where the policy list lives and how to reach it.

    Attributes:
        network: ``"tcp"`` or ``"unix"``.
        address: ``host:port`` for tcp, socket path for unix.
        username: ACL user name.  Empty means the default user.
        password: Password.  Empty means no ``AUTH``.
        db: Logical database index.
        key: Name of the list holding the policy records.
        socket_timeout: Per-command timeout in seconds.  ``None`` keeps the
            client's default (block until the server answers).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    network: Literal["tcp", "unix"] = "tcp"
    address: str = "127.0.0.1:6379"
    username: str = ""
    password: str = ""
    db: int = Field(default=0, ge=0)
    key: str = Field(default=DEFAULT_KEY, min_length=1)
    socket_timeout: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_address(self) -> AdapterConfig:
        if self.network == "tcp":
            host, sep, port = self.address.rpartition(":")
            if not sep or not host or not port.isdigit():
                raise ValueError(f"tcp address must look like 'host:port', got {self.address!r}")
        elif not self.address:
            raise ValueError("unix network requires a socket path as address")
        return self

    def with_options(self, **options: Any) -> AdapterConfig:
        """Return a validated copy with ``options`` overriding current values."""
        return AdapterConfig.model_validate({**self.model_dump(), **options})

    def client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for :class:`redis.Redis`."""
        kwargs: dict[str, Any] = {"db": self.db, "socket_timeout": self.socket_timeout}
        if self.network == "tcp":
            host, _, port = self.address.rpartition(":")
            kwargs["host"] = host
            kwargs["port"] = int(port)
        else:
            kwargs["unix_socket_path"] = self.address
        if self.username:
            kwargs["username"] = self.username
        if self.password:
            kwargs["password"] = self.password
        return kwargs
