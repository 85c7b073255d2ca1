"""
slack-about-service: answers the Slack /about slash command from a Neo4j social graph.
"""

__version__ = "1.0.0"
