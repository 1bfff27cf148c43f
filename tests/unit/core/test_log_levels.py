"""Test log level filtering of the file sink."""

import pytest

from prmerge.core.log import (
    ConsoleSink,
    FileSink,
    LevelFilteringExporter,
    LogfireSink,
    setup_logger,
)


def _log_all_levels(tmp_path, level):
    log_file = tmp_path / f"{level}.log"
    logger = setup_logger(
        log_root=tmp_path,
        run_name="test",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, level=level, path=str(log_file)),
        logfire=LogfireSink(enabled=False),
    )

    logger.spew("SPEW message")
    logger.trace("TRACE message")
    logger.debug("DEBUG message")
    logger.info("INFO message")
    logger.warn("WARN message")
    logger.error("ERROR message")
    logger.close()

    return log_file.read_text()


@pytest.mark.parametrize("level, included, excluded", [
    ("spew", ["SPEW", "TRACE", "DEBUG", "INFO", "WARN", "ERROR"], []),
    ("trace", ["TRACE", "DEBUG", "INFO"], ["SPEW"]),
    ("debug", ["DEBUG", "INFO", "WARN"], ["SPEW", "TRACE"]),
    ("info", ["INFO", "WARN", "ERROR"], ["SPEW", "TRACE", "DEBUG"]),
    ("warn", ["WARN", "ERROR"], ["SPEW", "TRACE", "DEBUG", "INFO"]),
    ("error", ["ERROR"], ["SPEW", "TRACE", "DEBUG", "INFO", "WARN"]),
])
def test_file_sink_filters_by_level(tmp_path, level, included, excluded):
    """Messages below the sink level never reach the file."""
    content = _log_all_levels(tmp_path, level)

    for name in included:
        assert f"{name} message" in content
    for name in excluded:
        assert f"{name} message" not in content


def test_file_sink_path_uses_run_name(tmp_path):
    """The default path template puts each run in its own directory."""
    logger = setup_logger(
        log_root=tmp_path,
        run_name="angular-components",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, level="info"),
        logfire=LogfireSink(enabled=False),
    )
    logger.info("hello from the run")
    logger.close()

    log_file = tmp_path / "angular-components" / "prmerge.log"
    assert log_file.exists()
    assert "hello from the run" in log_file.read_text()


def test_level_ordering():
    """Test level ordering: spew < trace < debug < info."""
    thresholds = LevelFilteringExporter._level_thresholds

    assert thresholds['spew'] < thresholds['trace']
    assert thresholds['trace'] < thresholds['debug']
    assert thresholds['debug'] < thresholds['info']
    assert thresholds['info'] < thresholds['warn']
    assert thresholds['warn'] < thresholds['error']
    assert thresholds['error'] < thresholds['fatal']
