import logging

import pytest

from slack_about.utils import is_unresolved_placeholder, load_config, setup_logging


def _write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


def test_load_config_expands_variables_inside_values(tmp_path, monkeypatch):
    monkeypatch.setenv("GRAPH_HOST", "graph.internal")
    path = _write_config(tmp_path, "graph:\n  uri: neo4j://${GRAPH_HOST}:7687\n  password: ${GRAPH_PASSWORD_UNSET}\n")
    monkeypatch.delenv("GRAPH_PASSWORD_UNSET", raising=False)

    config = load_config(path)

    assert config["graph"]["uri"] == "neo4j://graph.internal:7687"
    assert config["graph"]["password"] == "${GRAPH_PASSWORD_UNSET}"
    assert is_unresolved_placeholder(config["graph"]["password"])
    assert not is_unresolved_placeholder(config["graph"]["uri"])


def test_load_config_reads_path_from_environment(tmp_path, monkeypatch):
    path = _write_config(tmp_path, "slash_about:\n  top_n: 3\n")
    monkeypatch.setenv("SLACK_ABOUT_CONFIG", str(path))

    assert load_config()["slash_about"]["top_n"] == 3


def test_load_config_reports_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_setup_logging_writes_to_configured_file(tmp_path):
    log_file = tmp_path / "logs" / "about.log"
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging({"logging": {"level": "debug", "file": str(log_file)}})
        logging.getLogger("slack_about.test").debug("[SLASH ABOUT] hello")

        assert root.level == logging.DEBUG
        assert logging.getLogger("neo4j").level == logging.WARNING
        for handler in root.handlers:
            handler.flush()
        assert "[SLASH ABOUT] hello" in log_file.read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)
