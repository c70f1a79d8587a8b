import logging


def test_logger_creates_command_log(tmp_path, monkeypatch):
    monkeypatch.setenv("REQUESTARR_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("REQUESTARR_COMMAND", "sync")
    monkeypatch.setenv("REQUESTARR_RUN_ID", "run-1")

    from logger import init_logging, get_logger

    init_logging()
    get_logger("test").info("hello")

    logs = list(tmp_path.rglob("*.log"))
    assert len(logs) == 1
    assert logs[0].name == "sync-run-1.log"
    assert logs[0].parent.name == "sync"
    text = logs[0].read_text(encoding="utf-8")
    assert "hello" in text
    assert "| run-1 |" in text


def test_repeat_init_does_not_stack_handlers(monkeypatch):
    monkeypatch.setenv("REQUESTARR_COMMAND", "sync")

    from logger import init_logging

    init_logging()
    count = len(logging.getLogger().handlers)
    init_logging()

    assert len(logging.getLogger().handlers) == count


def test_quiet_has_no_console_handler(monkeypatch):
    monkeypatch.setenv("REQUESTARR_QUIET", "1")

    from logger import init_logging

    init_logging()

    handlers = logging.getLogger().handlers
    assert all(isinstance(h, logging.FileHandler) for h in handlers)


def test_verbose_forces_debug(monkeypatch):
    monkeypatch.setenv("REQUESTARR_VERBOSE", "1")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")

    from logger import init_logging

    init_logging()

    assert logging.getLogger().level == logging.DEBUG


def test_worker_records_are_prefixed_on_console():
    from logger.console import WorkerFormatter

    fmt = WorkerFormatter("%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "searching", None, None)

    record.threadName = "resolve_0"
    assert fmt.format(record) == "[resolve_0] searching"

    record.threadName = "MainThread"
    assert fmt.format(record) == "searching"
