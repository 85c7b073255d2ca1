"""
Neo4j schema definitions for the Slack social/keyword graph.

The graph is populated by a separate ingestion job; this service only reads it.
"""

from __future__ import annotations

from enum import Enum


class NodeLabels(str, Enum):
    """Node labels. A label doubles as the kind flag of a node."""

    USER = "User"
    CHANNEL = "Channel"
    KEYWORD = "Keyword"


class RelationshipTypes(str, Enum):
    """Relationship types used between graph entities."""

    # (:User)-[:IS_IN_CHANNEL {messageCount}]->(:Channel)
    IS_IN_CHANNEL = "IS_IN_CHANNEL"
    # (:Channel)-[:MENTIONS_CHANNEL {mentionCount, inChannelName}]->(:Channel)
    # The edge ends at the mentioned channel; inChannelName is where the mention was posted.
    MENTIONS_CHANNEL = "MENTIONS_CHANNEL"
    # (:User)-[:MENTIONS_KEYWORD]->(:Keyword)
    MENTIONS_KEYWORD = "MENTIONS_KEYWORD"
    # (:Keyword)-[:USED_IN_CHANNEL]->(:Channel)
    USED_IN_CHANNEL = "USED_IN_CHANNEL"


class NodeProperties:
    """Property names stored on nodes and relationships."""

    USER_NAME = "userName"
    USER_ID = "userId"
    CHANNEL_NAME = "channelName"
    CHANNEL_ID = "channelId"
    KEYWORD = "keyword"
    MESSAGE_COUNT = "messageCount"
    MENTION_COUNT = "mentionCount"
    IN_CHANNEL_NAME = "inChannelName"
