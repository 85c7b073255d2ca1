"""
Slash About pipeline package.

Holds resolver/aggregator/formatter logic for the /about command surface.
"""

from .models import (  # noqa: F401
    AboutCommandRequest,
    Acknowledgement,
    DisplayMessage,
    EntityKind,
    ResolvedEntity,
)
