"""
Configuration loading and logging setup for the /about service.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dotenv import find_dotenv, load_dotenv

CONFIG_PATH_ENV = "SLACK_ABOUT_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every connection or request at INFO.
NOISY_LOGGERS = ("neo4j", "urllib3", "httpx", "multipart")

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Read the service configuration.

    The path comes from the argument, then ``$SLACK_ABOUT_CONFIG``, then
    ``config.yaml``. A ``.env`` next to the package (or found from the
    working directory) is loaded first so ``${VAR}`` values can come from it.

    Raises:
        FileNotFoundError: the configuration file does not exist.
    """
    _load_env_file()

    path = Path(config_path or os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(config).__name__}")

    return _expand_env_vars(config)


def _load_env_file() -> None:
    project_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if project_env.exists():
        load_dotenv(project_env, override=True)
        return
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=True)


def _expand_env_vars(config: Any) -> Any:
    """
    Replace ``${VAR}`` references in string values, recursively.

    References to unset variables are kept verbatim so callers can tell a
    missing setting from an empty one (see ``is_unresolved_placeholder``).
    """
    if isinstance(config, dict):
        return {key: _expand_env_vars(value) for key, value in config.items()}
    if isinstance(config, list):
        return [_expand_env_vars(item) for item in config]
    if isinstance(config, str):
        return _PLACEHOLDER.sub(lambda match: os.getenv(match.group(1), match.group(0)), config)
    return config


def is_unresolved_placeholder(value: Any) -> bool:
    return isinstance(value, str) and _PLACEHOLDER.search(value) is not None


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configure the root logger from the ``logging`` section.

    ``logging.file`` is optional; without it records only go to stderr.
    """
    log_cfg = config.get("logging") or {}
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)

    handlers = [logging.StreamHandler()]
    log_file = log_cfg.get("file")
    if log_file and not is_unresolved_placeholder(log_file):
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
