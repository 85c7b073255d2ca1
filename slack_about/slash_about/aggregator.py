"""
Runs the fixed statistic queries for a resolved entity and merges the results.
"""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..graph.service import GraphService
from . import queries
from .errors import AggregationError
from .models import (
    ChannelStats,
    EntityKind,
    KeywordStats,
    MentionSummary,
    PlatformRef,
    ResolvedEntity,
    StatMetric,
    StatRecord,
    StatResult,
    UserStats,
)

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5
DEFAULT_QUERY_TIMEOUT_SECONDS = 15.0

Rows = List[Dict[str, Any]]


@dataclass(frozen=True)
class StatQuery:
    """One statistic: the Cypher to run and how to reduce its rows."""

    metric: StatMetric
    cypher: str
    params: Dict[str, Any]
    reduce: Callable[[Rows], Any]


class StatisticsAggregator:
    """
    Fan-out/fan-in over the statistic queries of one entity.

    All queries are submitted at once and awaited together. If any of them
    raises or misses the deadline the aggregation fails as a whole; a partial
    record is never produced. Rankings keep the order the store returned, so
    ties are broken by the store.
    """

    def __init__(
        self,
        graph_service: GraphService,
        *,
        top_n: int = DEFAULT_TOP_N,
        query_timeout: float = DEFAULT_QUERY_TIMEOUT_SECONDS,
    ):
        self.graph_service = graph_service
        self.top_n = max(1, int(top_n))
        self.query_timeout = query_timeout

    @classmethod
    def from_config(cls, graph_service: GraphService, config: Dict[str, Any]) -> "StatisticsAggregator":
        about_cfg = config.get("slash_about") or {}
        try:
            top_n = int(about_cfg.get("top_n", DEFAULT_TOP_N))
        except (TypeError, ValueError):
            top_n = DEFAULT_TOP_N
        try:
            timeout = float(about_cfg.get("query_timeout_seconds", DEFAULT_QUERY_TIMEOUT_SECONDS))
        except (TypeError, ValueError):
            timeout = DEFAULT_QUERY_TIMEOUT_SECONDS
        return cls(graph_service, top_n=top_n, query_timeout=timeout)

    def aggregate(self, entity: ResolvedEntity) -> StatRecord:
        stat_queries = self.plan(entity)
        results = self._run_parallel(entity, stat_queries)
        if entity.kind == EntityKind.USER:
            return self._build_user_stats(results)
        if entity.kind == EntityKind.CHANNEL:
            return self._build_channel_stats(results)
        return self._build_keyword_stats(results)

    def plan(self, entity: ResolvedEntity) -> List[StatQuery]:
        if entity.kind == EntityKind.USER:
            by_vertex = {"vertex_id": entity.vertex_id}
            return [
                StatQuery(StatMetric.USER_CHANNEL_COUNT, queries.USER_CHANNEL_COUNT, by_vertex, self._count),
                StatQuery(
                    StatMetric.USER_TOP_CHANNELS,
                    queries.USER_TOP_CHANNELS,
                    {**by_vertex, "limit": self.top_n},
                    self._top_names("channel_name"),
                ),
            ]
        if entity.kind == EntityKind.CHANNEL:
            by_vertex = {"vertex_id": entity.vertex_id}
            return [
                StatQuery(
                    StatMetric.CHANNEL_MOST_ACTIVE_USERS,
                    queries.CHANNEL_MOST_ACTIVE_USERS,
                    {**by_vertex, "limit": self.top_n},
                    self._top_names("user_name"),
                ),
                StatQuery(StatMetric.CHANNEL_MEMBER_COUNT, queries.CHANNEL_MEMBER_COUNT, by_vertex, self._count),
                StatQuery(
                    StatMetric.CHANNEL_MENTIONED_IN,
                    queries.CHANNEL_MENTIONED_IN,
                    by_vertex,
                    self._mention_summary,
                ),
                StatQuery(
                    StatMetric.CHANNEL_MENTIONS,
                    queries.CHANNEL_MENTIONS,
                    {"channel_name": entity.display_name},
                    self._mention_summary,
                ),
            ]
        by_vertices = {"vertex_ids": entity.vertex_ids}
        return [
            StatQuery(StatMetric.KEYWORD_USERS, queries.KEYWORD_USERS, by_vertices, self._unique_refs),
            StatQuery(StatMetric.KEYWORD_CHANNELS, queries.KEYWORD_CHANNELS, by_vertices, self._unique_refs),
        ]

    # ------------------------------------------------------------------
    # Execution

    def _run_parallel(self, entity: ResolvedEntity, stat_queries: List[StatQuery]) -> Dict[StatMetric, Any]:
        logger.info(
            "[SLASH ABOUT] Collecting %s statistics for %s %s",
            len(stat_queries),
            entity.kind.value,
            entity.display_name,
        )
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=len(stat_queries),
            thread_name_prefix="slash-about-stat",
        )
        try:
            future_map = {executor.submit(self._run_one, stat_query): stat_query.metric for stat_query in stat_queries}
            _done, not_done = concurrent.futures.wait(future_map, timeout=self.query_timeout)
        finally:
            # Hung gateway calls are abandoned, not awaited.
            executor.shutdown(wait=False, cancel_futures=True)

        results: Dict[StatMetric, Any] = {}
        failures: List[str] = []
        first_error: Optional[BaseException] = None
        for future, metric in future_map.items():
            if future in not_done:
                logger.warning("[SLASH ABOUT] %s query timed out after %ss", metric.value, self.query_timeout)
                failures.append(metric.value)
                continue
            error = future.exception()
            if error is not None:
                logger.error("[SLASH ABOUT] %s query failed: %s", metric.value, error)
                failures.append(metric.value)
                first_error = first_error or error
                continue
            result: StatResult = future.result()
            results[result.metric] = result.value

        if failures:
            raise AggregationError(entity.display_name, failures) from first_error

        logger.debug("[SLASH ABOUT] %s stats map: %s", entity.kind.value, results)
        return results

    def _run_one(self, stat_query: StatQuery) -> StatResult:
        rows = self.graph_service.run_query(stat_query.cypher, stat_query.params)
        return StatResult(metric=stat_query.metric, value=stat_query.reduce(rows))

    # ------------------------------------------------------------------
    # Row reducers

    @staticmethod
    def _count(rows: Rows) -> int:
        if not rows:
            return 0
        return int(rows[0].get("total") or 0)

    def _top_names(self, key: str) -> Callable[[Rows], tuple]:
        def reduce(rows: Rows) -> tuple:
            return tuple(str(row[key]) for row in rows[: self.top_n])

        return reduce

    def _mention_summary(self, rows: Rows) -> MentionSummary:
        return MentionSummary(
            channel_count=len(rows),
            top_channels=tuple(str(row["channel_name"]) for row in rows[: self.top_n]),
        )

    @staticmethod
    def _unique_refs(rows: Rows) -> tuple:
        # Several keyword nodes can point at the same user or channel; the Slack id is the identity.
        unique: Dict[str, PlatformRef] = {}
        for row in rows:
            ref_id = row.get("id")
            if ref_id is None or ref_id in unique:
                continue
            unique[ref_id] = PlatformRef(id=str(ref_id), name=str(row.get("name") or ref_id))
        return tuple(sorted(unique.values(), key=lambda ref: ref.name))

    # ------------------------------------------------------------------
    # Record builders

    @staticmethod
    def _build_user_stats(results: Dict[StatMetric, Any]) -> UserStats:
        return UserStats(
            channel_count=results[StatMetric.USER_CHANNEL_COUNT],
            top_channels=results[StatMetric.USER_TOP_CHANNELS],
        )

    @staticmethod
    def _build_channel_stats(results: Dict[StatMetric, Any]) -> ChannelStats:
        return ChannelStats(
            member_count=results[StatMetric.CHANNEL_MEMBER_COUNT],
            most_active_users=results[StatMetric.CHANNEL_MOST_ACTIVE_USERS],
            mentioned_in=results[StatMetric.CHANNEL_MENTIONED_IN],
            mentions=results[StatMetric.CHANNEL_MENTIONS],
        )

    @staticmethod
    def _build_keyword_stats(results: Dict[StatMetric, Any]) -> KeywordStats:
        return KeywordStats(
            users=results[StatMetric.KEYWORD_USERS],
            channels=results[StatMetric.KEYWORD_CHANNELS],
        )
