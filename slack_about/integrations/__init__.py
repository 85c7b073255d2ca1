"""
External integrations (Slack).
"""
