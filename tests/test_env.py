import os

import pytest

from env import ConfigError, get_env, reset_env_caches


def test_env_defaults():
    env = get_env()

    assert env.provider == "spotify"
    assert env.verbose is False
    assert env.quiet is False
    assert env.create_playlist is False
    assert env.workers >= 1
    assert env.batch_size > 0
    assert env.run_timeout == 0.0


def test_env_is_cached_until_reset(monkeypatch):
    first = get_env()
    monkeypatch.setenv("REQUESTARR_WORKERS", "7")

    assert get_env() is first

    reset_env_caches()
    assert get_env().workers == 7


def test_env_reads_run_context(monkeypatch):
    monkeypatch.setenv("REQUESTARR_PROVIDER", "YouTube")
    monkeypatch.setenv("REQUESTARR_CSV", "requests.csv")
    monkeypatch.setenv("REQUESTARR_PLAYLIST", "Friday")
    monkeypatch.setenv("REQUESTARR_CREATE_PLAYLIST", "yes")
    monkeypatch.setenv("REQUESTARR_VERBOSE", "1")

    env = get_env()

    assert env.provider == "youtube"
    assert env.csv_path == "requests.csv"
    assert env.playlist == "Friday"
    assert env.create_playlist is True
    assert env.verbose is True


def test_unknown_provider_is_rejected(monkeypatch):
    monkeypatch.setenv("REQUESTARR_PROVIDER", "napster")

    with pytest.raises(ConfigError):
        get_env()


@pytest.mark.parametrize("key", ["REQUESTARR_BATCH_SIZE", "REQUESTARR_MAX_ATTEMPTS"])
def test_non_positive_tunables_are_rejected(monkeypatch, key):
    monkeypatch.setenv(key, "0")

    with pytest.raises(ConfigError):
        get_env()


def test_garbage_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("REQUESTARR_WORKERS", "lots")
    monkeypatch.setenv("REQUESTARR_RATE_WINDOW_SEC", "soon")

    env = get_env()

    assert env.workers >= 1
    assert env.rate_window > 0


def test_sync_inputs_are_required(monkeypatch):
    with pytest.raises(ConfigError, match="CSV"):
        get_env().require_sync_inputs()

    monkeypatch.setenv("REQUESTARR_CSV", "requests.csv")
    monkeypatch.setenv("REQUESTARR_PLAYLIST", "Friday")
    reset_env_caches()

    with pytest.raises(ConfigError, match="SPOTIFY_CLIENT_ID"):
        get_env().require_sync_inputs()

    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "secret")
    reset_env_caches()

    get_env().require_sync_inputs()


def test_youtube_needs_no_spotify_credentials(monkeypatch):
    monkeypatch.setenv("REQUESTARR_PROVIDER", "youtube")
    monkeypatch.setenv("REQUESTARR_CSV", "requests.csv")
    monkeypatch.setenv("REQUESTARR_PLAYLIST", "PL123")

    get_env().require_sync_inputs()


def test_dotenv_never_overrides(tmp_path, monkeypatch):
    from env import load_dotenv_file

    monkeypatch.setenv("REQUESTARR_PLAYLIST", "from-shell")
    # registered so teardown removes what the loader sets
    monkeypatch.setenv("REQUESTARR_CSV_TEST_ONLY", "")
    monkeypatch.delenv("REQUESTARR_CSV_TEST_ONLY")
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "# comment\n"
        "REQUESTARR_PLAYLIST=from-file\n"
        'export REQUESTARR_CSV_TEST_ONLY="quoted value"  # trailing\n',
        encoding="utf-8",
    )

    assert load_dotenv_file(dotenv) == 1

    assert os.environ["REQUESTARR_PLAYLIST"] == "from-shell"
    assert os.environ["REQUESTARR_CSV_TEST_ONLY"] == "quoted value"


@pytest.mark.parametrize(
    "line,expected",
    [
        ("", None),
        ("# REQUESTARR_PLAYLIST=x", None),
        ("NO_EQUALS", None),
        ("A=1", ("A", "1")),
        ("A = spaced # note", ("A", "spaced")),
        ("A='has # hash'", ("A", "has # hash")),
        ("A=url#fragment", ("A", "url#fragment")),
    ],
)
def test_dotenv_line_parsing(line, expected):
    from env.env import _parse_dotenv_line

    assert _parse_dotenv_line(line) == expected
