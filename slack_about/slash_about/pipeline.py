"""
Slash About pipeline: resolve synchronously, then aggregate, format and deliver in the background.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..graph.service import GraphService, QueryError
from ..integrations.slack_client import DeliveryError, SlackResponseSink
from .aggregator import StatisticsAggregator
from .errors import MissingInputError, SlashAboutError
from .formatter import format_failure_notice, format_message
from .models import AboutCommandRequest, Acknowledgement, DisplayMessage, EntityKind, ResolvedEntity
from .resolver import EntityResolver, describe_matches

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND_WORKERS = 4
GRAPH_UNAVAILABLE_MESSAGE = "Activity summary cannot be created: the graph database is not reachable."


@dataclass
class SlashAboutResult:
    """
    Outcome of the synchronous phase.

    ``job`` completes when the background collection finished (delivered or
    failed); it carries no result back to the caller.
    """

    acknowledgement: Acknowledgement
    entity: Optional[ResolvedEntity] = None
    job: Optional["Future[None]"] = None


class SlashAboutPipeline:
    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        graph_service: Optional[GraphService] = None,
        sink: Optional[SlackResponseSink] = None,
        jobs: Optional[ThreadPoolExecutor] = None,
    ):
        self.config = config or {}
        about_cfg = self.config.get("slash_about") or {}
        self.graph_service = graph_service if graph_service is not None else GraphService(self.config)
        self.resolver = EntityResolver(self.graph_service)
        self.aggregator = StatisticsAggregator.from_config(self.graph_service, self.config)
        self.sink = sink if sink is not None else SlackResponseSink(self.config)
        self.post_failure_notice = bool(about_cfg.get("post_failure_notice", False))
        try:
            workers = int(about_cfg.get("background_workers", DEFAULT_BACKGROUND_WORKERS))
        except (TypeError, ValueError):
            workers = DEFAULT_BACKGROUND_WORKERS
        self._jobs = jobs or ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix="slash-about-job")

    def handle_command(self, command: AboutCommandRequest, callback_url: Optional[str]) -> SlashAboutResult:
        return self.handle(command.kind, command.raw_identifier, callback_url)

    def handle(self, kind: EntityKind, raw_identifier: str, callback_url: Optional[str]) -> SlashAboutResult:
        """
        Resolve the entity and, if found, start collecting statistics.

        Returns as soon as resolution finished; statistics are POSTed to
        ``callback_url`` later.
        """
        try:
            identifier = self.resolver.validate(kind, raw_identifier)
            if not callback_url or self.graph_service is None or not self.graph_service.is_available():
                raise MissingInputError()
            entity = self.resolver.resolve(kind, identifier)
        except SlashAboutError as exc:
            logger.info("[SLASH ABOUT] %s %r rejected (%s): %s", kind.value, raw_identifier, exc.status_code, exc.message)
            return SlashAboutResult(Acknowledgement(exc.status_code, exc.message))
        except QueryError as exc:
            logger.error("[SLASH ABOUT] Lookup of %s %r failed: %s", kind.value, raw_identifier, exc)
            return SlashAboutResult(Acknowledgement(500, GRAPH_UNAVAILABLE_MESSAGE))

        if entity.kind == EntityKind.KEYWORD:
            logger.debug("[SLASH ABOUT] Keyword %r matched %s", entity.display_name, describe_matches(entity))

        job = self._jobs.submit(self._collect_and_deliver, entity, callback_url)
        job.add_done_callback(self._log_job_result)
        return SlashAboutResult(
            acknowledgement=Acknowledgement(200, f"Collecting information about {entity.kind.value} {entity.display_name}."),
            entity=entity,
            job=job,
        )

    def close(self) -> None:
        self._jobs.shutdown(wait=False)
        self.graph_service.close()

    # ------------------------------------------------------------------
    # Background phase

    def _collect_and_deliver(self, entity: ResolvedEntity, callback_url: str) -> None:
        try:
            record = self.aggregator.aggregate(entity)
        except QueryError as exc:
            logger.error(
                "[SLASH ABOUT] No activity summary for %s %s: %s",
                entity.kind.value,
                entity.display_name,
                exc,
            )
            if self.post_failure_notice:
                self._deliver(format_failure_notice(entity), callback_url)
            return

        self._deliver(format_message(entity, record), callback_url)

    def _deliver(self, message: DisplayMessage, callback_url: str) -> None:
        try:
            self.sink.post(callback_url, message)
        except DeliveryError as exc:
            logger.error("[SLASH ABOUT] Delivery to %s failed: %s", callback_url, exc)
            return
        logger.info("[SLASH ABOUT] Delivered %r", message.text)

    @staticmethod
    def _log_job_result(job: "Future[None]") -> None:
        if job.cancelled():
            logger.warning("[SLASH ABOUT] Background collection cancelled")
            return
        error = job.exception()
        if error is not None:
            logger.error("[SLASH ABOUT] Background collection crashed", exc_info=error)
