from pathlib import Path

import pytest

from car_sitemap_sync.settings import Settings, SettingsError, load_settings


def test_defaults():
    settings = load_settings(environ={})
    assert settings.site_url == "https://www.diksxcars.co.ke"
    assert settings.prune_invalid_urls is True
    assert settings.check_url_status is False
    assert settings.url_check_timeout == 5.0
    assert settings.cache_path == Path("public") / "sitemap-cache.json"
    assert settings.placeholder_image == "https://www.diksxcars.co.ke/images/placeholder.jpg"


def test_environment_overrides():
    settings = load_settings(environ={
        "CHECK_URL_STATUS": "true",
        "PRUNE_INVALID_URLS": "0",
        "MAX_CONCURRENT_CHECKS": "4",
        "URL_CHECK_TIMEOUT": "2500",
        "API_URL": "https://api.example.com/",
        "LOG_LEVEL": "debug",
        "SKIP_VALIDATION": "",
    })
    assert settings.check_url_status is True
    assert settings.prune_invalid_urls is False
    assert settings.max_concurrent_checks == 4
    assert settings.url_check_timeout == 2.5
    assert settings.api_url == "https://api.example.com"
    assert settings.log_level == "DEBUG"
    assert settings.skip_validation is False


@pytest.mark.parametrize(
    "environ",
    [
        {"CHECK_URL_STATUS": "maybe"},
        {"MAX_CONCURRENT_CHECKS": "ten"},
        {"MAX_CONCURRENT_CHECKS": "0"},
        {"API_URL": "http://backend.example.com"},
    ],
)
def test_invalid_environment(environ):
    with pytest.raises(SettingsError):
        load_settings(environ=environ)


def test_config_file_then_environment(tmp_path):
    config = tmp_path / "sitemaps.toml"
    config.write_text(
        '[settings]\n'
        'output_dir = "site/public"\n'
        'secondary_dir = ""\n'
        'check_url_status = true\n'
        'max_concurrent_checks = 3\n',
        encoding="utf-8",
    )
    settings = load_settings(config, environ={"MAX_CONCURRENT_CHECKS": "7"})
    assert settings.output_dir == Path("site/public")
    assert settings.secondary_dir is None
    assert settings.check_url_status is True
    assert settings.max_concurrent_checks == 7
    assert settings.cache_path == Path("site/public/sitemap-cache.json")


def test_config_file_rejects_unknown_keys(tmp_path):
    config = tmp_path / "sitemaps.toml"
    config.write_text('[settings]\nsite_ulr = "https://x.co"\n', encoding="utf-8")
    with pytest.raises(SettingsError, match="site_ulr"):
        load_settings(config, environ={})


def test_config_file_rejects_bad_toml(tmp_path):
    config = tmp_path / "sitemaps.toml"
    config.write_text("[settings\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(config, environ={})


def test_with_overrides_ignores_none():
    settings = Settings().with_overrides(check_url_status=None, prune_invalid_urls=False)
    assert settings.check_url_status is False
    assert settings.prune_invalid_urls is False


@pytest.mark.parametrize(
    "line",
    ["site_url = 1", 'max_concurrent_checks = "ten"', "url_check_timeout_ms = true"],
)
def test_config_file_wrong_types(tmp_path, line):
    config = tmp_path / "sitemaps.toml"
    config.write_text(f"[settings]\n{line}\n", encoding="utf-8")
    with pytest.raises(SettingsError):
        load_settings(config, environ={})
