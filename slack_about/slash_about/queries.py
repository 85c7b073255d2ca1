"""
Cypher templates for /about lookups and statistics.

All user-derived values are bound as parameters ($name, $vertex_id, ...).
Rows are only ordered where a template says ORDER BY.
"""

from __future__ import annotations

from ..graph.schema import NodeLabels, NodeProperties as P, RelationshipTypes

USER = NodeLabels.USER.value
CHANNEL = NodeLabels.CHANNEL.value
KEYWORD = NodeLabels.KEYWORD.value
IS_IN_CHANNEL = RelationshipTypes.IS_IN_CHANNEL.value
MENTIONS_CHANNEL = RelationshipTypes.MENTIONS_CHANNEL.value
MENTIONS_KEYWORD = RelationshipTypes.MENTIONS_KEYWORD.value
USED_IN_CHANNEL = RelationshipTypes.USED_IN_CHANNEL.value

FIND_USER = f"""
MATCH (u:{USER})
WHERE u.{P.USER_NAME} = $name
RETURN elementId(u) AS vertex_id, u.{P.USER_NAME} AS name, u.{P.USER_ID} AS external_id
"""

FIND_CHANNEL = f"""
MATCH (c:{CHANNEL})
WHERE c.{P.CHANNEL_NAME} = $name
RETURN elementId(c) AS vertex_id, c.{P.CHANNEL_NAME} AS name, c.{P.CHANNEL_ID} AS external_id
"""

FIND_KEYWORDS = f"""
MATCH (k:{KEYWORD})
WHERE toLower(k.{P.KEYWORD}) CONTAINS $keyword
RETURN elementId(k) AS vertex_id, k.{P.KEYWORD} AS keyword
"""

USER_CHANNEL_COUNT = f"""
MATCH (u:{USER})-[:{IS_IN_CHANNEL}]->(c:{CHANNEL})
WHERE elementId(u) = $vertex_id
RETURN count(c) AS total
"""

USER_TOP_CHANNELS = f"""
MATCH (u:{USER})-[ic:{IS_IN_CHANNEL}]->(c:{CHANNEL})
WHERE elementId(u) = $vertex_id
RETURN c.{P.CHANNEL_NAME} AS channel_name, ic.{P.MESSAGE_COUNT} AS message_count
ORDER BY ic.{P.MESSAGE_COUNT} DESC
LIMIT $limit
"""

CHANNEL_MOST_ACTIVE_USERS = f"""
MATCH (u:{USER})-[ic:{IS_IN_CHANNEL}]->(c:{CHANNEL})
WHERE elementId(c) = $vertex_id
RETURN u.{P.USER_NAME} AS user_name, ic.{P.MESSAGE_COUNT} AS message_count
ORDER BY ic.{P.MESSAGE_COUNT} DESC
LIMIT $limit
"""

CHANNEL_MEMBER_COUNT = f"""
MATCH (u:{USER})-[:{IS_IN_CHANNEL}]->(c:{CHANNEL})
WHERE elementId(c) = $vertex_id
RETURN count(DISTINCT u) AS total
"""

# Channels this channel is mentioned in. Not limited: the number of rows is
# the distinct mentioning-channel count.
CHANNEL_MENTIONED_IN = f"""
MATCH (:{CHANNEL})-[m:{MENTIONS_CHANNEL}]->(c:{CHANNEL})
WHERE elementId(c) = $vertex_id
RETURN m.{P.IN_CHANNEL_NAME} AS channel_name, sum(m.{P.MENTION_COUNT}) AS mention_count
ORDER BY mention_count DESC
"""

# Channels mentioned by this channel, identified by the inChannelName edge property.
CHANNEL_MENTIONS = f"""
MATCH (:{CHANNEL})-[m:{MENTIONS_CHANNEL}]->(target:{CHANNEL})
WHERE m.{P.IN_CHANNEL_NAME} = $channel_name
RETURN target.{P.CHANNEL_NAME} AS channel_name, sum(m.{P.MENTION_COUNT}) AS mention_count
ORDER BY mention_count DESC
"""

KEYWORD_USERS = f"""
MATCH (u:{USER})-[:{MENTIONS_KEYWORD}]->(k:{KEYWORD})
WHERE elementId(k) IN $vertex_ids
RETURN u.{P.USER_ID} AS id, u.{P.USER_NAME} AS name
"""

KEYWORD_CHANNELS = f"""
MATCH (k:{KEYWORD})-[:{USED_IN_CHANNEL}]->(c:{CHANNEL})
WHERE elementId(k) IN $vertex_ids
RETURN c.{P.CHANNEL_ID} AS id, c.{P.CHANNEL_NAME} AS name
"""
