"""Tests for the HTTP transport and REST endpoints, against httpx.MockTransport."""

import json

import httpx
import pytest

from aci_inspector.api import InspectorAPI
from aci_inspector.errors import ContractError, HttpError, NetworkError, ParseError
from aci_inspector.transport.http import DEFAULT_BASE_URL, HttpClient, normalize_base_url, parse_json_or_raise


def make_api(handler):
    requests = []

    def recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http = HttpClient("http://aci.test/", transport=httpx.MockTransport(recording))
    return InspectorAPI(http), http, requests


def test_normalize_base_url():
    assert normalize_base_url("http://host:5228///") == "http://host:5228"
    assert normalize_base_url("  http://host  ") == "http://host"
    assert normalize_base_url("") == DEFAULT_BASE_URL
    assert normalize_base_url("   ") == DEFAULT_BASE_URL


class TestParseJson:
    def test_valid(self):
        assert parse_json_or_raise('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_html_body_gets_a_hint(self):
        with pytest.raises(ParseError) as exc:
            parse_json_or_raise("  <!DOCTYPE html><html><body>Welcome</body></html>")
        assert exc.value.kind == "parse"
        assert "It looks like HTML" in str(exc.value)
        assert "<!DOCTYPE html>" in str(exc.value)

    def test_other_text(self):
        with pytest.raises(ParseError, match="non-JSON output"):
            parse_json_or_raise("Bad Gateway")

    def test_snippet_is_truncated(self):
        with pytest.raises(ParseError) as exc:
            parse_json_or_raise("x" * 5000)
        assert "x" * 800 in str(exc.value)
        assert "x" * 801 not in str(exc.value)
        assert exc.value.body == "x" * 5000


@pytest.mark.asyncio
async def test_html_page_instead_of_backend():
    api, http, _ = make_api(lambda r: httpx.Response(200, text="<html><head><title>Site</title></head></html>"))
    with pytest.raises(ParseError, match="It looks like HTML"):
        await api.list_sessions()
    await http.close()


@pytest.mark.asyncio
async def test_http_error_carries_status_and_detail():
    api, http, _ = make_api(lambda r: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(HttpError) as exc:
        await api.list_sessions()
    assert exc.value.status == 500
    assert str(exc.value) == 'HTTP 500: {"error": "boom"}'
    await http.close()


@pytest.mark.asyncio
async def test_http_error_with_json_string_body():
    api, http, _ = make_api(lambda r: httpx.Response(404, json="Session not found"))
    with pytest.raises(HttpError, match="HTTP 404: Session not found"):
        await api.list_sessions()
    await http.close()


@pytest.mark.asyncio
async def test_error_status_with_non_json_body_is_a_parse_error():
    api, http, _ = make_api(lambda r: httpx.Response(502, text="Bad Gateway"))
    with pytest.raises(ParseError):
        await api.list_sessions()
    await http.close()


@pytest.mark.asyncio
async def test_connection_failure_is_a_network_error():
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    api, http, _ = make_api(refuse)
    with pytest.raises(NetworkError) as exc:
        await api.list_sessions()
    assert exc.value.kind == "network"
    assert "Connection refused" in str(exc.value)
    await http.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [httpx.DecodingError, httpx.TooManyRedirects, httpx.ReadTimeout])
async def test_any_request_failure_is_a_network_error(error):
    def fail(request):
        raise error("request went wrong", request=request)

    api, http, _ = make_api(fail)
    with pytest.raises(NetworkError, match="request went wrong"):
        await api.get_context_timeline("s1", "a1", True)
    await http.close()


@pytest.mark.asyncio
async def test_contract_error_names_the_endpoint():
    api, http, _ = make_api(lambda r: httpx.Response(200, json=[{"sessionId": "s1"}, {}]))
    with pytest.raises(ContractError, match=r"list_sessions\.response\[1\]\.sessionId"):
        await api.list_sessions()
    await http.close()


@pytest.mark.asyncio
async def test_create_session():
    api, http, requests = make_api(lambda r: httpx.Response(200, json={
        "sessionId": "s1", "createdAt": "2024-05-01T00:00:00Z", "agentCount": 1, "agents": [{"agentId": "a1"}],
    }))
    session = await api.create_session()
    assert session.first_agent.agent_id == "a1"
    assert requests[0].method == "POST"
    assert requests[0].url.path == "/api/sessions/"
    await http.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 204])
async def test_close_session_accepts_no_content(status):
    api, http, requests = make_api(lambda r: httpx.Response(status))
    await api.close_session("s1")
    assert requests[0].method == "DELETE"
    assert requests[0].url.path == "/api/sessions/s1"
    await http.close()


@pytest.mark.asyncio
async def test_close_session_failure():
    api, http, _ = make_api(lambda r: httpx.Response(404, text="gone"))
    with pytest.raises(HttpError, match=r"Failed to close session \(404\): gone"):
        await api.close_session("s1")
    await http.close()


@pytest.mark.asyncio
async def test_interact_posts_message():
    api, http, requests = make_api(lambda r: httpx.Response(200, json={"success": True, "response": "hello"}))
    result = await api.interact("s1", "a1", "hi there")
    assert result.response == "hello"
    request = requests[0]
    assert request.url.path == "/api/sessions/s1/agents/a1/interact/"
    assert json.loads(request.content) == {"message": "hi there"}
    await http.close()


@pytest.mark.asyncio
async def test_simulate_posts_assistant_output():
    api, http, requests = make_api(lambda r: httpx.Response(200, json={"success": True}))
    await api.simulate_assistant_output("s1", "a1", "<tool_call>{}</tool_call>")
    assert requests[0].url.path == "/api/sessions/s1/agents/a1/interact/simulate"
    assert json.loads(requests[0].content) == {"assistantOutput": "<tool_call>{}</tool_call>"}
    await http.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("include_obsolete,expected", [(True, "true"), (False, "false")])
async def test_timeline_include_obsolete_flag(include_obsolete, expected):
    api, http, requests = make_api(lambda r: httpx.Response(200, json=[{"id": "i1", "type": "assistant_text", "seq": 3}]))
    items = await api.get_context_timeline("s1", "a1", include_obsolete)
    assert items[0].seq == 3
    assert requests[0].url.path == "/api/sessions/s1/agents/a1/context"
    assert requests[0].url.params["includeObsolete"] == expected
    await http.close()


@pytest.mark.asyncio
async def test_raw_context_is_text():
    api, http, requests = make_api(lambda r: httpx.Response(200, text="[system] you are an agent"))
    assert await api.get_raw_context("s1", "a1", False) == "[system] you are an agent"
    assert requests[0].url.params["includeObsolete"] == "false"
    await http.close()


@pytest.mark.asyncio
async def test_raw_llm_input_failure():
    api, http, _ = make_api(lambda r: httpx.Response(503, text="warming up"))
    with pytest.raises(HttpError, match=r"Failed to load raw llm input \(503\): warming up"):
        await api.get_raw_llm_input("s1", "a1")
    await http.close()


@pytest.mark.asyncio
async def test_run_window_action_posts_params():
    api, http, requests = make_api(lambda r: httpx.Response(200, json={"success": True, "message": "ok"}))
    result = await api.run_window_action("s1", "a1", "w1", "resize", {"width": 80})
    assert result.success is True
    assert result.message == "ok"
    assert requests[0].url.path == "/api/sessions/s1/agents/a1/windows/w1/actions/resize"
    assert json.loads(requests[0].content) == {"params": {"width": 80}}
    await http.close()


@pytest.mark.asyncio
async def test_windows_and_apps_paths():
    def route(request):
        if request.url.path.endswith("/windows/"):
            return httpx.Response(200, json=[{"id": "w1", "actions": [{"id": "close"}]}])
        return httpx.Response(200, json=[{"name": "launcher"}])

    api, http, requests = make_api(route)
    windows = await api.get_windows("s1", "a1")
    apps = await api.get_apps("s1", "a1")
    assert windows[0].action("close") is not None
    assert apps[0].name == "launcher"
    assert [r.url.path for r in requests] == [
        "/api/sessions/s1/agents/a1/windows/",
        "/api/sessions/s1/agents/a1/apps",
    ]
    await http.close()
