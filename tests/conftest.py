"""Shared fixtures for messenger tests."""

from unittest.mock import Mock

import pytest
import requests

from messenger.config.environment import ENV_VARS
from messenger.dingtalk import AccessTokenCache, Credential, DingTalkClient
from messenger.logging.context import clear_log_context


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(body=None, status_code=200, json_error=None):
    """Build a stand-in for requests.Response."""
    response = Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real credentials in the developer's shell out of the tests."""
    for var in list(ENV_VARS.values()) + ["LOG_LEVEL"]:
        monkeypatch.delenv(var, raising=False)
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_cache(clock):
    return AccessTokenCache(ttl_seconds=7000, cleanup_interval_seconds=7200, clock=clock)


@pytest.fixture
def credential():
    return Credential(
        app_key="dingappkey",
        app_secret="s3cret",
        agent_id="123456",
        corp_id="ding-corp",
    )


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(credential, token_cache, session):
    return DingTalkClient(credential, token_cache, session=session)


@pytest.fixture
def token_body():
    return {"errcode": 0, "errmsg": "ok", "access_token": "tok-123", "expires_in": 7200}


@pytest.fixture
def user_info_body():
    return {
        "errcode": 0,
        "errmsg": "ok",
        "result": {
            "userid": "manager4220",
            "unionid": "union-abc",
            "associated_unionid": "assoc-xyz",
            "device_id": "dev-1",
            "sys_level": 1,
            "name": "张三",
            "sys": True,
        },
        "request_id": "req-1",
    }


@pytest.fixture
def user_detail_body():
    return {
        "errcode": 0,
        "errmsg": "ok",
        "result": {
            "userid": "manager4220",
            "unionid": "union-abc",
            "email": "zhangsan@example.com",
            "mobile": "13800000000",
            "name": "张三",
            "active": True,
            "remark": "",
            "dept_id_list": [1, 2],
        },
    }
