import os

from cli.common import find_log_file, format_size, infer_run_status, list_run_files


def test_run_status_uses_last_marker(tmp_path):
    log = tmp_path / "sync-1.log"
    log.write_text("x | RUN_STATUS=incomplete\ny | RUN_STATUS=ok\n", encoding="utf-8")

    assert infer_run_status(log) == "ok"


def test_run_status_unknown_without_marker(tmp_path):
    log = tmp_path / "sync-2.log"
    log.write_text("still running\n", encoding="utf-8")

    assert infer_run_status(log) == "unknown"
    assert infer_run_status(tmp_path / "gone.log") == "unknown"


def test_list_and_find_across_command_dirs(tmp_path):
    (tmp_path / "sync").mkdir()
    (tmp_path / "auth").mkdir()
    old = tmp_path / "sync" / "sync-a.log"
    new = tmp_path / "auth" / "auth-b.log"
    old.write_text("a", encoding="utf-8")
    new.write_text("b", encoding="utf-8")
    os.utime(old, (1000, 1000))
    os.utime(new, (2000, 2000))

    runs = list_run_files(tmp_path)

    assert [r.run_id for r in runs] == ["auth-b", "sync-a"]
    assert runs[1].command == "sync"
    assert find_log_file(tmp_path, "sync-a") == old
    assert find_log_file(tmp_path, "auth-b.log") == new
    assert find_log_file(tmp_path, "nope") is None


def test_format_size():
    assert format_size(10) == "10 B"
    assert format_size(2048) == "2.0 KB"
    assert format_size(3 * 1024 * 1024) == "3.0 MB"
