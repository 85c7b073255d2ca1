"""
Resolver that maps /about identifiers to graph nodes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..graph.service import GraphService
from . import queries
from .errors import NotFoundError, ValidationError
from .models import EntityKind, KeywordMatch, ResolvedEntity

logger = logging.getLogger(__name__)

_NAME_LOOKUPS = {
    EntityKind.USER: queries.FIND_USER,
    EntityKind.CHANNEL: queries.FIND_CHANNEL,
}


@dataclass
class EntityResolver:
    graph_service: GraphService

    def resolve(self, kind: EntityKind, raw_identifier: str) -> ResolvedEntity:
        """
        Validate ``raw_identifier`` and look it up with a single graph query.

        Raises:
            ValidationError: empty input, or more than one name for users/channels.
            NotFoundError: no matching node.
            QueryError: the graph query itself failed.
        """
        identifier = self.validate(kind, raw_identifier)
        if kind == EntityKind.KEYWORD:
            return self._resolve_keyword(identifier)
        return self._resolve_name(kind, identifier)

    @staticmethod
    def validate(kind: EntityKind, raw_identifier: Optional[str]) -> str:
        """Check the identifier without touching the graph and return it trimmed."""
        raw = raw_identifier or ""
        if kind == EntityKind.KEYWORD:
            identifier = raw.strip()
        else:
            # A space after the sigil ("@ alice") splits the name in two
            identifier = raw.rstrip()
        if not identifier:
            raise ValidationError.empty(kind)
        if kind != EntityKind.KEYWORD and any(ch.isspace() for ch in identifier):
            raise ValidationError.multiple_names(kind)
        return identifier

    def _resolve_name(self, kind: EntityKind, name: str) -> ResolvedEntity:
        logger.debug("[SLASH ABOUT] Fetching node information for %s %s", kind.value, name)
        rows = self.graph_service.run_query(_NAME_LOOKUPS[kind], {"name": name})
        if not rows:
            raise NotFoundError(kind, name)
        # User and channel names are unique in the ingested graph, so the first row is the match.
        row = rows[0]
        return ResolvedEntity(
            kind=kind,
            vertex_id=str(row["vertex_id"]),
            display_name=row.get("name") or name,
            external_id=row.get("external_id"),
        )

    def _resolve_keyword(self, keyword: str) -> ResolvedEntity:
        logger.debug("[SLASH ABOUT] Fetching keyword nodes containing %r", keyword)
        rows = self.graph_service.run_query(queries.FIND_KEYWORDS, {"keyword": keyword.lower()})
        if not rows:
            raise NotFoundError(EntityKind.KEYWORD, keyword)
        matches = tuple(self._keyword_match(row) for row in rows)
        return ResolvedEntity(
            kind=EntityKind.KEYWORD,
            vertex_id=matches[0].vertex_id,
            display_name=keyword,
            keyword_matches=matches,
        )

    @staticmethod
    def _keyword_match(row: Dict[str, Any]) -> KeywordMatch:
        return KeywordMatch(vertex_id=str(row["vertex_id"]), keyword=row.get("keyword") or "")


def describe_matches(entity: ResolvedEntity) -> List[str]:
    """Matched keyword strings, for logging."""
    return [match.keyword for match in entity.keyword_matches]
