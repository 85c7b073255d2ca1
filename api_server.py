"""
FastAPI server for the Slack /about slash command.

Serves the following requests:
    /about                  display usage information
    /about @userName        statistics for the Slack user userName
    /about #channelName     statistics for the Slack channel channelName
    /about keyword          users and channels that used keyword

Slack posts the command to /ask. The reply to that request only says whether
the entity was found; the statistics are POSTed to the request's response_url
once collected. See https://api.slack.com/slash-commands
"""

from __future__ import annotations

import asyncio
import hmac
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Form
from fastapi.responses import PlainTextResponse

from slack_about import __version__
from slack_about.slash_about.parser import USAGE_TEXT, parse_command_text
from slack_about.slash_about.pipeline import SlashAboutPipeline
from slack_about.utils import is_unresolved_placeholder, load_config, setup_logging

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Request denied. Invalid or missing API token."

app = FastAPI(title="Slack About Service", version=__version__)

_config: Optional[Dict[str, Any]] = None
about_pipeline: Optional[SlashAboutPipeline] = None


def _get_config() -> Dict[str, Any]:
    global _config
    if _config is None:
        try:
            _config = load_config()
        except FileNotFoundError as exc:
            logger.warning("[API] %s; using environment settings only", exc)
            _config = {}
    return _config


def _get_pipeline() -> SlashAboutPipeline:
    global about_pipeline
    if about_pipeline is None:
        about_pipeline = SlashAboutPipeline(_get_config())
    return about_pipeline


def _verification_token() -> Optional[str]:
    token = os.getenv("SLACK_TOKEN")
    if token:
        return token
    token = (_get_config().get("slack") or {}).get("verification_token")
    if not token or is_unresolved_placeholder(token):
        return None
    return str(token)


def _is_authorized(token: Optional[str]) -> bool:
    expected = _verification_token()
    if not expected or not token:
        return False
    return hmac.compare_digest(token, expected)


@app.post("/ask", response_class=PlainTextResponse)
async def ask(
    token: Optional[str] = Form(None),
    text: Optional[str] = Form(None),
    response_url: Optional[str] = Form(None),
    command: Optional[str] = Form(None),
    team_domain: Optional[str] = Form(None),
    channel_name: Optional[str] = Form(None),
    user_name: Optional[str] = Form(None),
):
    logger.debug(
        "[API] %s %r from %s in #%s (%s)",
        command,
        text,
        user_name,
        channel_name,
        team_domain,
    )
    if not _is_authorized(token):
        logger.error("[API] Received unauthorized request: invalid or missing API token.")
        return PlainTextResponse(UNAUTHORIZED_MESSAGE, status_code=403)

    request = parse_command_text(text)
    if request is None:
        return PlainTextResponse(USAGE_TEXT, status_code=200)

    pipeline = _get_pipeline()
    result = await asyncio.to_thread(pipeline.handle_command, request, response_url)
    ack = result.acknowledgement
    return PlainTextResponse(ack.text, status_code=ack.status_code)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    pipeline = _get_pipeline()
    graph = pipeline.graph_service
    return {
        "status": "ok" if graph.is_available() else "degraded",
        "service": "Slack About Service",
        "version": __version__,
        "timestamp": datetime.now().isoformat(),
        "graph": {
            "available": graph.is_available(),
            "last_query": graph.last_query_metadata(),
        },
    }


@app.on_event("shutdown")
async def shutdown_event():
    """Release the graph driver and background job pool."""
    global about_pipeline
    if about_pipeline is not None:
        logger.info("[API] Shutting down /about pipeline...")
        about_pipeline.close()
        about_pipeline = None


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    config = _get_config()
    setup_logging(config)

    if not _verification_token():
        raise RuntimeError(
            "No Slack integration API token has been configured for this application. "
            "Set environment variable SLACK_TOKEN and restart the application."
        )
    if not _get_pipeline().graph_service.is_available():
        raise RuntimeError(
            "No graph database has been configured for this application. "
            "Set NEO4J_URI, NEO4J_USER and NEO4J_PASSWORD or the graph section of config.yaml."
        )

    server_cfg = config.get("server") or {}
    host = server_cfg.get("host", "0.0.0.0")
    port = int(os.getenv("PORT") or server_cfg.get("port", 8000))

    logger.info("Starting Slack About Service on http://%s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level="info")
