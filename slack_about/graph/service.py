"""
GraphService - thin Neo4j client used as the graph query gateway.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, Dict, List, Optional

from neo4j import Driver, GraphDatabase, Query
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable, SessionExpired

from ..utils import is_unresolved_placeholder

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT_SECONDS = 10.0


class QueryError(RuntimeError):
    """Raised when a graph query cannot be executed or fails on the server."""


class GraphService:
    """
    Wrapper around the Neo4j Python driver.

    Every statement is a fixed Cypher template; values derived from user input
    are always passed as parameters. The driver (and with it the authenticated
    session pool) is created lazily and dropped after connectivity failures so
    the next call re-establishes it.
    """

    def __init__(self, config: Dict[str, Any], *, driver: Optional[Driver] = None):
        graph_cfg = dict(config.get("graph", {}) or {})
        env_enabled = os.getenv("NEO4J_ENABLED")
        if env_enabled is not None:
            graph_cfg["enabled"] = env_enabled.lower() == "true"

        env_uri = os.getenv("NEO4J_URI")
        env_username = os.getenv("NEO4J_USER") or os.getenv("NEO4J_USERNAME")
        env_password = os.getenv("NEO4J_PASSWORD")
        env_database = os.getenv("NEO4J_DATABASE")

        if env_uri:
            graph_cfg["uri"] = env_uri
        if env_username:
            graph_cfg["username"] = env_username
        if env_password:
            graph_cfg["password"] = env_password
        if env_database:
            graph_cfg["database"] = env_database

        # ${VAR} left over from config.yaml means the variable was never set
        graph_cfg = {key: value for key, value in graph_cfg.items() if not is_unresolved_placeholder(value)}

        self.enabled: bool = bool(graph_cfg.get("enabled", True))
        self.uri: Optional[str] = graph_cfg.get("uri")
        self.username: Optional[str] = graph_cfg.get("username")
        self.password: Optional[str] = graph_cfg.get("password")
        self.database: Optional[str] = graph_cfg.get("database")
        try:
            self.query_timeout = float(graph_cfg.get("query_timeout_seconds", DEFAULT_QUERY_TIMEOUT_SECONDS))
        except (TypeError, ValueError):
            self.query_timeout = DEFAULT_QUERY_TIMEOUT_SECONDS

        self._driver: Optional[Driver] = driver
        self._driver_lock = threading.Lock()
        self._last_query: Optional[Dict[str, Any]] = None

    def _connect(self) -> Driver:
        driver = self._driver
        if driver is not None:
            return driver
        with self._driver_lock:
            # Parallel statistic queries share one driver and its connection pool.
            if self._driver is not None:
                return self._driver
            if not self.is_available():
                raise QueryError("Graph database is not configured (graph.uri / credentials missing or disabled).")
            try:
                self._driver = GraphDatabase.driver(
                    self.uri,
                    auth=(self.username or "", self.password or ""),
                )
            except (DriverError, ValueError) as exc:
                logger.error("[GRAPH] Failed to create Neo4j driver for %s: %s", self.uri, exc)
                raise QueryError(f"Failed to connect to graph database: {exc}") from exc
            logger.info("[GRAPH] Connected to Neo4j at %s", self.uri)
            return self._driver

    def close(self) -> None:
        with self._driver_lock:
            driver, self._driver = self._driver, None
        self._close_driver(driver)

    def _drop_driver(self, failed: Driver) -> None:
        """Forget ``failed`` unless another thread already replaced it."""
        with self._driver_lock:
            if self._driver is not failed:
                return
            self._driver = None
        self._close_driver(failed)

    @staticmethod
    def _close_driver(driver: Optional[Driver]) -> None:
        if driver is None:
            return
        try:
            driver.close()
        except (DriverError, OSError) as exc:
            logger.debug("[GRAPH] Ignoring error while closing driver: %s", exc)

    def is_available(self) -> bool:
        if self._driver is not None:
            return True
        return bool(
            self.enabled
            and self.uri
            and self.username is not None
            and self.password is not None
        )

    # ------------------------------------------------------------------
    # Query API

    def run_query(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Execute a read-only statement and return its rows as dictionaries.

        Raises:
            QueryError: if the driver is unavailable or the statement fails.
        """
        driver = self._connect()
        statement = Query(query, timeout=self.query_timeout)
        try:
            with driver.session(database=self.database or None) as session:
                result = session.run(statement, params or {})
                rows = [{key: record[key] for key in record.keys()} for record in result]
        except (ServiceUnavailable, SessionExpired) as exc:
            logger.warning("[GRAPH] Connection lost, driver will reconnect on next query: %s", exc)
            self._record_query_metadata(query, params, error=str(exc))
            self._drop_driver(driver)
            raise QueryError(f"Graph database unavailable: {exc}") from exc
        except (Neo4jError, DriverError) as exc:
            logger.error("[GRAPH] Query failed: %s", exc)
            self._record_query_metadata(query, params, error=str(exc))
            raise QueryError(f"Graph query failed: {exc}") from exc

        self._record_query_metadata(query, params, row_count=len(rows))
        logger.debug("[GRAPH] %s row(s) for %s", len(rows), " ".join(query.split()))
        return rows

    def last_query_metadata(self) -> Optional[Dict[str, Any]]:
        if not self._last_query:
            return None
        return dict(self._last_query)

    def _record_query_metadata(
        self,
        query: str,
        params: Optional[Dict[str, Any]],
        *,
        row_count: Optional[int] = None,
        error: Optional[str] = None,
    ) -> None:
        self._last_query = {
            "cypher": query.strip() if isinstance(query, str) else query,
            "params": params or {},
            "database": self.database or None,
            "row_count": row_count,
            "error": error,
        }
