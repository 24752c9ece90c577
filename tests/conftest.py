"""Shared test fixtures."""

import fakeredis
import pytest
from casbin.model import Model

from redis_policy_adapter import Adapter, encode
from redis_policy_adapter.config import DEFAULT_KEY
from redis_policy_adapter.stores import RedisListStore

RBAC_MODEL = """
[request_definition]
r = sub, obj, act

[policy_definition]
p = sub, obj, act

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = g(r.sub, p.sub) && r.obj == p.obj && r.act == p.act
"""


@pytest.fixture
def server():
    return fakeredis.FakeServer()


@pytest.fixture
def client(server):
    return fakeredis.FakeRedis(server=server)


@pytest.fixture
def store(client):
    store = RedisListStore(client)
    yield store
    store.close()


@pytest.fixture
def adapter(client):
    adapter = Adapter(client=client)
    yield adapter
    adapter.close()


@pytest.fixture
def model():
    m = Model()
    m.load_model_from_text(RBAC_MODEL)
    return m


@pytest.fixture
def seed(client):
    """Push ``(ptype, rule)`` pairs onto the policy list, in order."""

    def _seed(rules):
        for ptype, rule in rules:
            client.rpush(DEFAULT_KEY, encode(ptype, rule))

    return _seed


@pytest.fixture
def stored(client):
    """Return the raw list contents."""

    def _stored():
        return client.lrange(DEFAULT_KEY, 0, -1)

    return _stored
