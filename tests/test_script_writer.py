"""Tests for the script writer agent and the Claude client wrapper."""

import json

import httpx
import pytest
from anthropic import APIConnectionError

from scriptboard.agents import ScriptRequest, ScriptWriterAgent
from scriptboard.agents.base import extract_json
from scriptboard.errors import ConfigurationError, MalformedUpstreamResponse, UpstreamError
from scriptboard.services import anthropic as anthropic_module
from scriptboard.services.anthropic import AnthropicClient

SCRIPT = {
    "title": "How Coffee Is Made",
    "scenes": [
        {
            "sceneNumber": 1,
            "duration": "10 seconds",
            "voiceOver": "It starts on a farm.",
            "visualDescription": "Coffee cherries on the branch",
        },
        {
            "sceneNumber": 2,
            "duration": "15 seconds",
            "voiceOver": "Then it is roasted.",
            "visualDescription": "Beans tumbling in a roaster",
            "notes": "Slow motion",
        },
    ],
}


def connection_error() -> APIConnectionError:
    return APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))


class FakeClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create_message(self, prompt, max_tokens=4096, system=None, temperature=0.7):
        self.calls.append({"prompt": prompt, "system": system})
        if self.error is not None:
            raise self.error
        return self.reply


def agent_with(reply=None, error=None):
    client = FakeClient(reply, error)
    return ScriptWriterAgent(client=client, model="test-model"), client


def test_parses_bare_json():
    agent, client = agent_with(json.dumps(SCRIPT))

    script = agent.run(ScriptRequest(topic="coffee"))

    assert script.title == "How Coffee Is Made"
    assert [scene.scene_number for scene in script.scenes] == [1, 2]
    assert script.scenes[1].notes == "Slow motion"
    assert "coffee" in client.calls[0]["prompt"]
    assert "JSON" in client.calls[0]["system"]


def test_parses_fenced_json():
    agent, _ = agent_with(f"Here you go:\n```json\n{json.dumps(SCRIPT)}\n```\nEnjoy!")

    assert agent.run(ScriptRequest(topic="coffee")).title == "How Coffee Is Made"


def test_parses_json_surrounded_by_prose():
    agent, _ = agent_with(f"Sure! {json.dumps(SCRIPT)} Let me know.")

    assert len(agent.run(ScriptRequest(topic="coffee")).scenes) == 2


def test_prompt_includes_options():
    agent, client = agent_with(json.dumps(SCRIPT))

    agent.run(ScriptRequest(topic="coffee", num_scenes=5, style="documentary"))

    prompt = client.calls[0]["prompt"]
    assert "NUMBER OF SCENES: 5" in prompt
    assert "STYLE: documentary" in prompt


@pytest.mark.parametrize(
    "reply",
    [
        "I cannot help with that.",
        "[1, 2, 3]",
        json.dumps({"title": "No scenes", "scenes": []}),
        json.dumps({"title": "Bad", "scenes": [{"sceneNumber": 1}]}),
    ],
)
def test_malformed_replies(reply):
    agent, _ = agent_with(reply)

    with pytest.raises(MalformedUpstreamResponse):
        agent.run(ScriptRequest(topic="coffee"))


def test_api_failure_becomes_upstream_error():
    agent, _ = agent_with(error=connection_error())

    with pytest.raises(UpstreamError):
        agent.run(ScriptRequest(topic="coffee"))


class _FakeText:
    def __init__(self, text):
        self.text = text


class _FakeResponse:
    def __init__(self, text):
        self.content = [_FakeText(text)]


class _FakeMessages:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def create(self, **kwargs):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return _FakeResponse(outcome)


class _FakeAnthropic:
    outcomes = []

    def __init__(self, api_key):
        self.api_key = api_key
        self.messages = _FakeMessages(self.outcomes)


def test_client_retries_connection_errors(monkeypatch):
    _FakeAnthropic.outcomes = [connection_error(), "ok"]
    monkeypatch.setattr(anthropic_module, "Anthropic", _FakeAnthropic)
    monkeypatch.setattr(anthropic_module.time, "sleep", lambda seconds: None)

    client = AnthropicClient(api_key="test-key", model="test-model")

    assert client.create_message("hi") == "ok"
    assert client._client.messages.calls == 2


def test_client_gives_up_after_max_retries(monkeypatch):
    _FakeAnthropic.outcomes = [connection_error() for _ in range(3)]
    monkeypatch.setattr(anthropic_module, "Anthropic", _FakeAnthropic)
    monkeypatch.setattr(anthropic_module.time, "sleep", lambda seconds: None)

    client = AnthropicClient(api_key="test-key", max_retries=3)

    with pytest.raises(APIConnectionError):
        client.create_message("hi")
    assert client._client.messages.calls == 3


def test_client_requires_api_key(monkeypatch):
    monkeypatch.setattr(anthropic_module.config, "anthropic_api_key", "")

    with pytest.raises(ConfigurationError):
        AnthropicClient()


def test_extract_json_ignores_braces_inside_strings():
    reply = 'Result: {"title": "Curly } braces {", "scenes": []} done'

    assert json.loads(extract_json(reply))["title"] == "Curly } braces {"


def test_numeric_scene_duration_is_accepted():
    script = {"title": "Quick", "scenes": [{"sceneNumber": 1, "duration": 10, "visualDescription": "Sky"}]}
    agent, _ = agent_with(json.dumps(script))

    assert agent.run(ScriptRequest(topic="sky")).scenes[0].duration == "10"
