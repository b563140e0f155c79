"""Tests for the logging bootstrap."""

import logging
from pathlib import Path

import vibe_builder.io.logging_setup


class TestConfigure:
    def test_writes_to_log_dir(self, isolated_logging):
        runtime = vibe_builder.io.logging_setup.configure(run_name="parse")
        assert runtime.level_name == "INFO"
        path = Path(runtime.file_path)
        assert path.parent == isolated_logging
        assert path.name.startswith("parse-")

        logging.getLogger("vibe_builder.core.segmentation").info("hello log")
        for handler in logging.getLogger("vibe_builder").handlers:
            handler.flush()
        assert "hello log" in path.read_text(encoding="utf-8")

    def test_idempotent(self, isolated_logging):
        first = vibe_builder.io.logging_setup.configure(level="DEBUG")
        second = vibe_builder.io.logging_setup.configure(level="ERROR")
        assert second is first
        assert len(logging.getLogger("vibe_builder").handlers) == 2
        assert vibe_builder.io.logging_setup.get_runtime() is first

    def test_env_level_and_explicit_override(self, isolated_logging, monkeypatch):
        monkeypatch.setenv("VIBE_BUILDER_LOG_LEVEL", "warning")
        assert vibe_builder.io.logging_setup.configure().level == logging.WARNING
        vibe_builder.io.logging_setup.reset()
        assert vibe_builder.io.logging_setup.configure(level="debug").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, isolated_logging):
        assert vibe_builder.io.logging_setup.configure(level="chatty").level_name == "INFO"

    def test_explicit_log_file(self, isolated_logging, monkeypatch, tmp_path):
        target = tmp_path / "custom" / "run.log"
        monkeypatch.setenv("VIBE_BUILDER_LOG_FILE", str(target))
        runtime = vibe_builder.io.logging_setup.configure()
        assert runtime.file_path == str(target)
        assert target.parent.is_dir()

    def test_run_name_is_sanitized(self, isolated_logging):
        runtime = vibe_builder.io.logging_setup.configure(run_name="../weird name!")
        assert Path(runtime.file_path).name.startswith("weird-name-")


def test_reset_detaches_handlers(isolated_logging):
    vibe_builder.io.logging_setup.configure()
    vibe_builder.io.logging_setup.reset()
    logger = logging.getLogger("vibe_builder")
    assert logger.handlers == []
    assert logger.propagate is True
    assert vibe_builder.io.logging_setup.get_runtime() is None


def test_root_logger_is_left_alone(isolated_logging):
    root = logging.getLogger()
    before = (root.level, list(root.handlers))
    vibe_builder.io.logging_setup.configure()
    assert (root.level, list(root.handlers)) == before


class TestResolveLevel:
    def test_explicit_beats_env(self, monkeypatch):
        monkeypatch.setenv("VIBE_BUILDER_LOG_LEVEL", "ERROR")
        assert vibe_builder.io.logging_setup.resolve_level("debug") == ("DEBUG", logging.DEBUG)
        assert vibe_builder.io.logging_setup.resolve_level() == ("ERROR", logging.ERROR)

    def test_default_is_info(self, monkeypatch):
        monkeypatch.delenv("VIBE_BUILDER_LOG_LEVEL", raising=False)
        assert vibe_builder.io.logging_setup.resolve_level() == ("INFO", logging.INFO)
