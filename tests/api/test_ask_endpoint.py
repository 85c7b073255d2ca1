from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

import api_server
from slack_about.slash_about import queries
from slack_about.slash_about.pipeline import SlashAboutPipeline
from tests.fixtures.graph_fakes import FakeGraphService, RecordingSink

TOKEN = "slack-test-token"
RESPONSE_URL = "https://hooks.slack.com/commands/T1/123/abc"


@pytest.fixture
def graph():
    return FakeGraphService({
        queries.FIND_USER: [{"vertex_id": "7", "name": "alice", "external_id": "U1"}],
        queries.FIND_CHANNEL: [],
        queries.USER_CHANNEL_COUNT: [{"total": 3}],
        queries.USER_TOP_CHANNELS: [{"channel_name": "general", "message_count": 50}],
    })


@pytest.fixture
def client(graph, monkeypatch):
    monkeypatch.setenv("SLACK_TOKEN", TOKEN)
    jobs = ThreadPoolExecutor(max_workers=1)
    pipeline = SlashAboutPipeline({}, graph_service=graph, sink=RecordingSink(), jobs=jobs)
    monkeypatch.setattr(api_server, "about_pipeline", pipeline)
    yield TestClient(api_server.app, raise_server_exceptions=False)
    jobs.shutdown(wait=True)


def _ask(client, text, token=TOKEN):
    return client.post(
        "/ask",
        data={
            "token": token,
            "team_domain": "example",
            "channel_name": "general",
            "user_name": "bob",
            "command": "/about",
            "text": text,
            "response_url": RESPONSE_URL,
        },
    )


def test_ask_acknowledges_known_user(client):
    response = _ask(client, "@alice")
    assert response.status_code == 200
    assert response.text == "Collecting information about user alice."


def test_ask_rejects_bad_token(client, graph):
    response = _ask(client, "@alice", token="wrong")
    assert response.status_code == 403
    assert response.text == api_server.UNAUTHORIZED_MESSAGE
    assert graph.calls == []


def test_ask_returns_usage_for_empty_text(client):
    response = _ask(client, "")
    assert response.status_code == 200
    assert "@user" in response.text


def test_ask_rejects_multi_word_channel(client, graph):
    response = _ask(client, "#eng team")
    assert response.status_code == 400
    assert response.text == "Please specify only one channel name."
    assert graph.calls == []


def test_ask_reports_unknown_channel(client):
    response = _ask(client, "#ghost")
    assert response.status_code == 404
    assert response.text == "Channel ghost is unknown."


def test_health_reports_graph_status(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["graph"]["available"] is True
