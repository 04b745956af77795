"""Unit tests for the DingTalk open API client."""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from conftest import make_response
from messenger.dingtalk import Credential, DingTalkClient
from messenger.dingtalk.models import AccessToken, PlatformEnvelope, UserDetail, UserInfo
from messenger.exceptions import AuthError, InvalidCredentialError, MessageError


# ============================================================================
# fetch_access_token
# ============================================================================


class TestFetchAccessToken:

    @pytest.mark.parametrize(
        "app_key, app_secret",
        [("", "secret"), ("key", ""), ("", "")],
    )
    def test_incomplete_credential_makes_no_request(self, token_cache, session, app_key, app_secret):
        client = DingTalkClient(Credential(app_key=app_key, app_secret=app_secret), token_cache, session=session)

        with pytest.raises(InvalidCredentialError):
            client.fetch_access_token()

        session.request.assert_not_called()

    def test_success_populates_cache(self, client, session, token_cache, token_body):
        session.request.return_value = make_response(token_body)

        token = client.fetch_access_token()

        assert isinstance(token, AccessToken)
        assert token.access_token == "tok-123"
        assert token.expires_in == 7200
        assert token_cache.get("dingappkey") == "tok-123"

    def test_request_shape(self, client, session, token_body):
        session.request.return_value = make_response(token_body)

        client.fetch_access_token()

        session.request.assert_called_once_with(
            "GET",
            "https://oapi.dingtalk.com/gettoken?appkey=dingappkey&appsecret=s3cret",
            json=None,
            timeout=3,
        )

    def test_platform_error_leaves_cache_untouched(self, client, session, token_cache):
        session.request.return_value = make_response({"errcode": 40089, "errmsg": "不合法的corpid或corpsecret"})

        with pytest.raises(AuthError) as exc_info:
            client.fetch_access_token()

        assert str(exc_info.value) == "不合法的corpid或corpsecret"
        assert not hasattr(exc_info.value, "errcode")
        assert token_cache.get("dingappkey") is None

    def test_platform_error_does_not_replace_cached_token(self, client, session, token_cache):
        token_cache.put("dingappkey", "still-valid")
        session.request.return_value = make_response({"errcode": 88, "errmsg": "denied"})

        with pytest.raises(AuthError):
            client.fetch_access_token()

        assert token_cache.get("dingappkey") == "still-valid"

    def test_transport_error(self, client, session):
        session.request.side_effect = requests.exceptions.ConnectionError("boom")

        with pytest.raises(MessageError, match="boom"):
            client.fetch_access_token()

    def test_timeout_is_wrapped(self, client, session):
        session.request.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(MessageError):
            client.fetch_access_token()

    def test_undecodable_body(self, client, session, token_cache):
        session.request.return_value = make_response(
            status_code=502, json_error=json.JSONDecodeError("Expecting value", "<html>", 0)
        )

        with pytest.raises(MessageError, match="failed to decode DingTalk API response"):
            client.fetch_access_token()
        assert token_cache.get("dingappkey") is None

    def test_non_object_body(self, client, session):
        session.request.return_value = make_response(["not", "an", "object"])

        with pytest.raises(MessageError, match="failed to decode"):
            client.fetch_access_token()

    def test_success_without_token_is_an_error(self, client, session, token_cache):
        session.request.return_value = make_response({"errcode": 0, "errmsg": "ok"})

        with pytest.raises(MessageError):
            client.fetch_access_token()
        assert token_cache.get("dingappkey") is None


# ============================================================================
# get_cached_token
# ============================================================================


class TestGetCachedToken:

    def test_warm_cache_issues_at_most_one_request(self, client, session, token_body):
        session.request.return_value = make_response(token_body)

        first = client.get_cached_token()
        second = client.get_cached_token()

        assert first == second == "tok-123"
        assert session.request.call_count == 1

    def test_prefilled_cache_makes_no_request(self, client, session, token_cache):
        token_cache.put("dingappkey", "cached")

        assert client.get_cached_token() == "cached"
        session.request.assert_not_called()

    def test_empty_cached_value_triggers_refresh(self, client, session, token_cache, token_body):
        token_cache.put("dingappkey", "")
        session.request.return_value = make_response(token_body)

        assert client.get_cached_token() == "tok-123"
        assert session.request.call_count == 1

    def test_expired_entry_triggers_refresh(self, client, session, clock, token_body):
        session.request.return_value = make_response(token_body)
        client.get_cached_token()

        clock.advance(7000)
        client.get_cached_token()

        assert session.request.call_count == 2

    def test_fetch_failure_propagates(self, client, session):
        session.request.return_value = make_response({"errcode": 1, "errmsg": "nope"})

        with pytest.raises(MessageError, match="nope"):
            client.get_cached_token()

    def test_cache_shared_between_clients(self, credential, token_cache, token_body):
        first_session = Mock(spec=requests.Session)
        first_session.request.return_value = make_response(token_body)
        second_session = Mock(spec=requests.Session)

        DingTalkClient(credential, token_cache, session=first_session).get_cached_token()
        token = DingTalkClient(credential, token_cache, session=second_session).get_cached_token()

        assert token == "tok-123"
        second_session.request.assert_not_called()


# ============================================================================
# resolve_user_info / resolve_user_detail
# ============================================================================


class TestResolveUserInfo:

    def test_success(self, client, session, token_cache, user_info_body):
        token_cache.put("dingappkey", "tok")
        session.request.return_value = make_response(user_info_body)

        info = client.resolve_user_info("code-1")

        assert isinstance(info, UserInfo)
        assert info.userid == "manager4220"
        assert info.unionid == "union-abc"
        assert info.associated_unionid == "assoc-xyz"
        assert info.sys is True
        assert info.sys_level == 1
        session.request.assert_called_once_with(
            "POST",
            "https://oapi.dingtalk.com/topapi/v2/user/getuserinfo?access_token=tok",
            json={"code": "code-1"},
            timeout=3,
        )

    def test_fetches_token_on_cold_cache(self, client, session, token_body, user_info_body):
        session.request.side_effect = [make_response(token_body), make_response(user_info_body)]

        info = client.resolve_user_info("code-1")

        assert info.userid == "manager4220"
        methods = [c.args[0] for c in session.request.call_args_list]
        assert methods == ["GET", "POST"]

    def test_code_with_quotes_is_sent_as_json(self, client, session, token_cache, user_info_body):
        token_cache.put("dingappkey", "tok")
        session.request.return_value = make_response(user_info_body)

        client.resolve_user_info('a"b')

        assert session.request.call_args.kwargs["json"] == {"code": 'a"b'}

    def test_platform_error(self, client, session, token_cache):
        token_cache.put("dingappkey", "tok")
        session.request.return_value = make_response({"errcode": 40078, "errmsg": "不存在的临时授权码"})

        with pytest.raises(AuthError, match="不存在的临时授权码"):
            client.resolve_user_info("used-code")

    def test_missing_result(self, client, session, token_cache):
        token_cache.put("dingappkey", "tok")
        session.request.return_value = make_response({"errcode": 0, "errmsg": "ok"})

        with pytest.raises(MessageError, match="no result object"):
            client.resolve_user_info("code")

    def test_token_failure_stops_before_lookup(self, client, session):
        session.request.return_value = make_response({"errcode": 40089, "errmsg": "bad secret"})

        with pytest.raises(AuthError):
            client.resolve_user_info("code")

        assert session.request.call_count == 1


class TestResolveUserDetail:

    def test_full_chain(self, client, session, token_body, user_info_body, user_detail_body):
        session.request.side_effect = [
            make_response(token_body),
            make_response(user_info_body),
            make_response(user_detail_body),
        ]

        detail = client.resolve_user_detail("code-1")

        assert isinstance(detail, UserDetail)
        assert detail.userid == "manager4220"
        assert detail.email == "zhangsan@example.com"
        assert detail.mobile == "13800000000"
        assert detail.name == "张三"
        assert detail.active is True
        # Token fetched once, reused for both lookups
        assert session.request.call_count == 3
        last = session.request.call_args_list[-1]
        assert last.args == ("POST", "https://oapi.dingtalk.com/topapi/v2/user/get?access_token=tok-123")
        assert last.kwargs["json"] == {"userid": "manager4220", "language": "zh_CN"}
        assert last.kwargs["timeout"] == 3

    def test_info_failure_skips_detail_request(self, client, session, token_cache):
        token_cache.put("dingappkey", "tok")
        session.request.return_value = make_response({"errcode": 40078, "errmsg": "code expired"})

        with pytest.raises(AuthError, match="code expired"):
            client.resolve_user_detail("stale")

        assert session.request.call_count == 1
        assert "getuserinfo" in session.request.call_args.args[1]

    def test_detail_failure(self, client, session, token_cache, user_info_body):
        token_cache.put("dingappkey", "tok")
        session.request.side_effect = [
            make_response(user_info_body),
            make_response({"errcode": 60121, "errmsg": "找不到该用户"}),
        ]

        with pytest.raises(AuthError, match="找不到该用户"):
            client.resolve_user_detail("code")

    def test_detail_transport_error(self, client, session, token_cache, user_info_body):
        token_cache.put("dingappkey", "tok")
        session.request.side_effect = [
            make_response(user_info_body),
            requests.exceptions.ConnectionError("reset"),
        ]

        with pytest.raises(MessageError):
            client.resolve_user_detail("code")


# ============================================================================
# Links and envelope
# ============================================================================


class TestClientLinks:

    def test_login_url_uses_app_key(self, client):
        url = client.login_url("xyz", "https://example.com/cb")
        assert "appid=dingappkey" in url
        assert "state=xyz" in url

    def test_workbench_link_uses_corp_and_agent(self, client):
        url = client.workbench_link("https://example.com")
        assert "corpid=ding-corp" in url
        assert "app_id=0_123456" in url

    def test_slide_link(self, client):
        assert client.slide_link("https://example.com").endswith("&pc_slide=true")


class TestPlatformEnvelope:

    def test_splits_code_from_payload(self):
        envelope = PlatformEnvelope.from_body({"errcode": 0, "errmsg": "ok", "result": {"a": 1}})
        assert envelope.ok
        assert envelope.payload == {"result": {"a": 1}}

    def test_missing_errcode_means_success(self):
        assert PlatformEnvelope.from_body({"access_token": "x"}).ok

    def test_non_zero_errcode(self):
        envelope = PlatformEnvelope.from_body({"errcode": 33, "errmsg": None})
        assert not envelope.ok
        assert envelope.errmsg == ""


def test_credential_secret_hidden_from_repr():
    assert "s3cret" not in repr(Credential(app_key="k", app_secret="s3cret"))


class TestSessionOwnership:

    def test_injected_session_is_left_open(self, client, session):
        with client:
            pass
        session.close.assert_not_called()

    def test_own_session_is_closed(self, credential, token_cache):
        with patch("messenger.dingtalk.client.requests.Session") as session_cls:
            with DingTalkClient(credential, token_cache):
                pass
        session_cls.return_value.close.assert_called_once()
