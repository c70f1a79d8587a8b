import pytest

from auth import AuthHealthResult, AuthHealthStatus, AuthInvalid, get_provider, provider_names


def test_registry_knows_both_providers():
    assert set(provider_names()) == {"spotify", "youtube"}

    with pytest.raises(ValueError):
        get_provider("napster")


def test_healthy_statuses():
    assert AuthHealthStatus.OK.healthy
    assert AuthHealthStatus.OK_API_QUOTA.healthy
    assert not AuthHealthStatus.AUTH_INVALID.healthy
    assert not AuthHealthStatus.FAILED.healthy


def test_spotify_without_credentials_is_invalid():
    with pytest.raises(AuthInvalid):
        get_provider("spotify").build_client()


def test_spotify_health_check_reports_invalid():
    from auth import check

    result = check("spotify")

    assert result.provider == "spotify"
    assert result.status == AuthHealthStatus.AUTH_INVALID


def test_youtube_without_client_secrets_is_not_healthy():
    from auth import check

    result = check("youtube")

    assert result.provider == "youtube"
    assert not result.status.healthy


def test_auth_errors_carry_provider_and_exit_code():
    from auth import AuthFailed

    err = AuthInvalid("no token", provider="spotify")

    assert str(err) == "spotify: no token"
    assert err.exit_code == 12
    assert AuthFailed("boom").exit_code == 20


def test_check_defaults_to_configured_provider(monkeypatch):
    from auth import check

    monkeypatch.setenv("REQUESTARR_PROVIDER", "youtube")

    assert check().provider == "youtube"


def test_check_all_covers_every_provider():
    from auth import check_all

    results = check_all()

    assert [r.provider for r in results] == ["spotify", "youtube"]


def test_auth_check_all_cli_reports_invalid():
    from requestarr import main

    assert main(["auth", "check", "all", "--quiet"]) == 12


@pytest.mark.parametrize(
    "status,code",
    [
        (AuthHealthStatus.OK, 0),
        (AuthHealthStatus.OK_API_QUOTA, 0),
        (AuthHealthStatus.AUTH_INVALID, 12),
        (AuthHealthStatus.FAILED, 20),
    ],
)
def test_health_result_exit_code(status, code):
    assert AuthHealthResult("spotify", status, "x").exit_code == code
