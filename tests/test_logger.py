import logging


def test_logger_creates_file(tmp_path, monkeypatch):
    monkeypatch.setenv("REQUESTARR_LOGS_DIR", str(tmp_path))
    monkeypatch.setenv("REQUESTARR_COMMAND", "auth")

    from logger import init_logging, get_logger

    init_logging()
    get_logger("test").info("hello")

    assert any(tmp_path.rglob("*.log"))


def test_logger_returns_stdlib_logger():
    from logger import init_logging, get_logger

    init_logging()

    assert isinstance(get_logger("test"), logging.Logger)
