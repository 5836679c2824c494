import logging

from shared.logging.logging_setup import ArchiveFormatter, ColorLogger, ConsoleFormatter


def _record(level: int, msg: str, *args) -> logging.LogRecord:
    return logging.LogRecord("archive", level, __file__, 1, msg, args, None)


def test_formatter_prefixes_warnings_and_errors():
    formatter = ArchiveFormatter("UTC", fmt="%(message)s")
    assert formatter.format(_record(logging.INFO, "loaded %d categories", 9)) == "loaded 9 categories"
    assert formatter.format(_record(logging.WARNING, "slow")) == "⚠️ slow"
    assert formatter.format(_record(logging.CRITICAL, "down")) == "⛔ down"


def test_formatter_keeps_template_of_broken_args():
    formatter = ArchiveFormatter("UTC", fmt="%(message)s")
    assert formatter.format(_record(logging.INFO, "missing %s %s", "one")) == "missing %s %s"


def test_console_formatter_colors_only_tagged_records():
    formatter = ConsoleFormatter("UTC", fmt="%(message)s")
    tagged = _record(logging.INFO, "ready")
    tagged.color = "green"
    assert formatter.format(tagged) == "\033[32mready\033[0m"
    assert formatter.format(_record(logging.INFO, "ready")) == "ready"


def test_color_logger_passes_color_as_extra(caplog):
    logger = ColorLogger(logging.getLogger("archive.tests.color"))
    with caplog.at_level(logging.INFO):
        logger.info("subscribed to %s", "documents", color="cyan")
        logger.warning("plain")
    first, second = caplog.records
    assert first.getMessage() == "subscribed to documents"
    assert first.color == "cyan"
    assert not hasattr(second, "color")
