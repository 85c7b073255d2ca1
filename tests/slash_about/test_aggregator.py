import threading
import time

import pytest

from slack_about.graph.service import QueryError
from slack_about.slash_about import queries
from slack_about.slash_about.aggregator import StatisticsAggregator
from slack_about.slash_about.errors import AggregationError
from slack_about.slash_about.formatter import format_message
from slack_about.slash_about.models import (
    ChannelStats,
    EntityKind,
    KeywordMatch,
    KeywordStats,
    MentionSummary,
    PlatformRef,
    ResolvedEntity,
    UserStats,
)
from tests.fixtures.graph_fakes import FakeGraphService

USER = ResolvedEntity(kind=EntityKind.USER, vertex_id="7", display_name="alice", external_id="U1")
CHANNEL = ResolvedEntity(kind=EntityKind.CHANNEL, vertex_id="11", display_name="general", external_id="C1")
KEYWORD = ResolvedEntity(
    kind=EntityKind.KEYWORD,
    vertex_id="21",
    display_name="deploy",
    keyword_matches=(KeywordMatch("21", "deploy"), KeywordMatch("22", "deployment")),
)


def _names(*names, key="channel_name"):
    return [{key: name, "message_count": 100 - index} for index, name in enumerate(names)]


def test_aggregator_builds_user_stats():
    graph = FakeGraphService({
        queries.USER_CHANNEL_COUNT: [{"total": 3}],
        queries.USER_TOP_CHANNELS: _names("general", "dev"),
    })
    stats = StatisticsAggregator(graph).aggregate(USER)

    assert stats == UserStats(channel_count=3, top_channels=("general", "dev"))
    assert sorted(graph.queries_run()) == sorted([queries.USER_CHANNEL_COUNT, queries.USER_TOP_CHANNELS])
    for _, params in graph.calls:
        assert params["vertex_id"] == "7"


def test_aggregator_truncates_rankings_to_top_n_in_store_order():
    graph = FakeGraphService({
        queries.USER_CHANNEL_COUNT: [{"total": 7}],
        queries.USER_TOP_CHANNELS: _names("a", "b", "c", "d", "e", "f", "g"),
    })
    stats = StatisticsAggregator(graph).aggregate(USER)
    assert stats.top_channels == ("a", "b", "c", "d", "e")


def test_aggregator_builds_channel_stats_with_mention_counts():
    graph = FakeGraphService({
        queries.CHANNEL_MOST_ACTIVE_USERS: _names("bob", "alice", key="user_name"),
        queries.CHANNEL_MEMBER_COUNT: [{"total": 12}],
        queries.CHANNEL_MENTIONED_IN: [
            {"channel_name": name, "mention_count": 10 - index}
            for index, name in enumerate(["dev", "ops", "qa", "sales", "design", "random"])
        ],
        queries.CHANNEL_MENTIONS: [],
    })
    stats = StatisticsAggregator(graph).aggregate(CHANNEL)

    assert stats == ChannelStats(
        member_count=12,
        most_active_users=("bob", "alice"),
        mentioned_in=MentionSummary(channel_count=6, top_channels=("dev", "ops", "qa", "sales", "design")),
        mentions=MentionSummary(channel_count=0, top_channels=()),
    )
    mentions_params = dict(graph.calls)[queries.CHANNEL_MENTIONS]
    assert mentions_params == {"channel_name": "general"}


def _delayed(rows, seconds):
    def respond(_params):
        time.sleep(seconds)
        return rows

    return respond


def _channel_graph(delays):
    rows = {
        queries.CHANNEL_MOST_ACTIVE_USERS: _names("bob", "alice", key="user_name"),
        queries.CHANNEL_MEMBER_COUNT: [{"total": 12}],
        queries.CHANNEL_MENTIONED_IN: [{"channel_name": "dev", "mention_count": 4}],
        queries.CHANNEL_MENTIONS: [{"channel_name": "ops", "mention_count": 2}],
    }
    return FakeGraphService({query: _delayed(rows[query], delays[query]) for query in rows})


def test_channel_message_order_does_not_depend_on_query_completion_order():
    ordered = [
        queries.CHANNEL_MOST_ACTIVE_USERS,
        queries.CHANNEL_MEMBER_COUNT,
        queries.CHANNEL_MENTIONED_IN,
        queries.CHANNEL_MENTIONS,
    ]
    first_done_first = {query: 0.05 * index for index, query in enumerate(ordered)}
    last_done_first = {query: 0.05 * index for index, query in enumerate(reversed(ordered))}

    messages = [
        format_message(CHANNEL, StatisticsAggregator(_channel_graph(delays)).aggregate(CHANNEL))
        for delays in (first_done_first, last_done_first)
    ]

    assert messages[0].to_payload() == messages[1].to_payload()
    assert [block.text for block in messages[1].attachments] == [
        "Total members: 12",
        "Most active members: @bob, @alice",
        "Most frequently mentioned in: #dev",
        "Most frequently mentioned: #ops",
    ]


def test_aggregator_deduplicates_keyword_refs_by_platform_id():
    graph = FakeGraphService({
        queries.KEYWORD_USERS: [
            {"id": "U2", "name": "zoe"},
            {"id": "U1", "name": "alice"},
            {"id": "U1", "name": "alice.old"},
        ],
        queries.KEYWORD_CHANNELS: [
            {"id": "C2", "name": "ops"},
            {"id": "C1", "name": "dev"},
            {"id": "C2", "name": "ops"},
        ],
    })
    stats = StatisticsAggregator(graph).aggregate(KEYWORD)

    assert stats == KeywordStats(
        users=(PlatformRef("U1", "alice"), PlatformRef("U2", "zoe")),
        channels=(PlatformRef("C1", "dev"), PlatformRef("C2", "ops")),
    )
    for _, params in graph.calls:
        assert params == {"vertex_ids": ["21", "22"]}


def test_aggregator_fails_whole_request_when_one_query_fails():
    graph = FakeGraphService({
        queries.CHANNEL_MOST_ACTIVE_USERS: _names("bob", key="user_name"),
        queries.CHANNEL_MEMBER_COUNT: [{"total": 1}],
        queries.CHANNEL_MENTIONED_IN: QueryError("server closed connection"),
        queries.CHANNEL_MENTIONS: [],
    })
    with pytest.raises(AggregationError) as excinfo:
        StatisticsAggregator(graph).aggregate(CHANNEL)

    assert excinfo.value.failures == ["channel_mentioned_in"]
    assert isinstance(excinfo.value, QueryError)
    assert len(graph.calls) == 4


def test_aggregator_times_out_hung_queries():
    release = threading.Event()

    def hang(_params):
        release.wait(5)
        return [{"total": 1}]

    graph = FakeGraphService({
        queries.USER_CHANNEL_COUNT: hang,
        queries.USER_TOP_CHANNELS: _names("general"),
    })
    try:
        with pytest.raises(AggregationError) as excinfo:
            StatisticsAggregator(graph, query_timeout=0.2).aggregate(USER)
    finally:
        release.set()

    assert excinfo.value.failures == ["user_channel_count"]


def test_aggregator_reads_limits_from_config():
    aggregator = StatisticsAggregator.from_config(
        FakeGraphService(),
        {"slash_about": {"top_n": 3, "query_timeout_seconds": "2.5"}},
    )
    assert aggregator.top_n == 3
    assert aggregator.query_timeout == 2.5
