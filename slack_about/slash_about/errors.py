"""
Errors raised before the /about acknowledgement is sent.

Each carries the HTTP status the API layer answers with. Failures after the
acknowledgement (graph queries, delivery) are logged only; see
``slack_about.graph.service.QueryError`` and
``slack_about.integrations.slack_client.DeliveryError``.
"""

from __future__ import annotations

from typing import Sequence

from ..graph.service import QueryError
from .models import EntityKind

MISSING_INPUT_MESSAGE = "The statistics service cannot process this request: missing input."


class SlashAboutError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SlashAboutError):
    """Malformed identifier; never reaches the graph."""

    status_code = 400

    @classmethod
    def multiple_names(cls, kind: EntityKind) -> "ValidationError":
        return cls(f"Please specify only one {kind.value} name.")

    @classmethod
    def empty(cls, kind: EntityKind) -> "ValidationError":
        return cls(f"Please specify a {kind.value} name.")


class NotFoundError(SlashAboutError):
    status_code = 404

    def __init__(self, kind: EntityKind, identifier: str):
        super().__init__(f"{kind.label} {identifier} is unknown.")
        self.kind = kind
        self.identifier = identifier


class MissingInputError(SlashAboutError):
    """Internal precondition violated (no gateway, no callback URL)."""

    status_code = 500

    def __init__(self, message: str = MISSING_INPUT_MESSAGE):
        super().__init__(message)


class AggregationError(QueryError):
    """One or more statistic queries failed; no statistics record was built."""

    def __init__(self, entity_name: str, failures: Sequence[str]):
        self.entity_name = entity_name
        self.failures = list(failures)
        super().__init__(
            f"Statistics for {entity_name} could not be collected; failed: {', '.join(self.failures)}"
        )
