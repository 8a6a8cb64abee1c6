"""Settings for the car sitemap synchronizer.

Module-level constants are the defaults.  :func:`load_settings` layers an
optional TOML config file, then environment variables, on top of them::

    [settings]
    site_url = "https://www.diksxcars.co.ke"
    api_url = "https://backend.diksxcars.co.ke"
    output_dir = "public"
    secondary_dir = "dist"
    check_url_status = true
"""

from __future__ import annotations

import os
import sys
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

SITE_URL = "https://www.diksxcars.co.ke"
API_URL = "https://backend.diksxcars.co.ke"

# --- Output ---
OUTPUT_DIR = "public"      # authoritative copy
SECONDARY_DIR = "dist"     # production build copy, written only if present
CACHE_FILENAME = "sitemap-cache.json"
INDEX_FILENAME = "sitemap-index.xml"

# --- Images ---
PLACEHOLDER_IMAGE_PATH = "/images/placeholder.jpg"
MAX_IMAGES_PER_URL = 10  # Google's per-URL image limit

# --- URL pruning ---
PRUNE_INVALID_URLS = True
CHECK_URL_STATUS = False  # HEAD every URL; slow, off by default
MAX_CONCURRENT_CHECKS = 10
URL_CHECK_TIMEOUT_MS = 5_000
USER_AGENT = "Diksx-Sitemap-Generator/1.0"

# --- Content API ---
API_TIMEOUT = 15  # seconds
USE_CLOUDSCRAPER = False

# --- Post-run validation ---
SKIP_VALIDATION = False
VALIDATION_COMMAND = (sys.executable, "-m", "car_sitemap_sync.tools.validate_sitemaps")

# --- Misc ---
LOG_LEVEL = "INFO"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class SettingsError(ValueError):
    """Raised when a configuration value is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one synchronization run."""

    site_url: str = SITE_URL
    api_url: str = API_URL
    output_dir: Path = Path(OUTPUT_DIR)
    secondary_dir: Path | None = Path(SECONDARY_DIR)
    cache_file: Path | None = None  # defaults to <output_dir>/sitemap-cache.json
    prune_invalid_urls: bool = PRUNE_INVALID_URLS
    check_url_status: bool = CHECK_URL_STATUS
    max_concurrent_checks: int = MAX_CONCURRENT_CHECKS
    url_check_timeout_ms: int = URL_CHECK_TIMEOUT_MS
    api_timeout: float = API_TIMEOUT
    use_cloudscraper: bool = USE_CLOUDSCRAPER
    skip_validation: bool = SKIP_VALIDATION
    validation_command: tuple[str, ...] = field(default=VALIDATION_COMMAND)
    log_level: str = LOG_LEVEL

    def __post_init__(self):
        for name in ("site_url", "api_url"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise SettingsError(f"{name} must be a string, got {value!r}")
            if not value.startswith("https://"):
                raise SettingsError(f"{name} must be an HTTPS URL, got {value!r}")
            object.__setattr__(self, name, value.rstrip("/"))
        for name in ("max_concurrent_checks", "url_check_timeout_ms"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise SettingsError(f"{name} must be an integer, got {value!r}")
        if self.max_concurrent_checks < 1:
            raise SettingsError("max_concurrent_checks must be at least 1")
        if self.url_check_timeout_ms < 1:
            raise SettingsError("url_check_timeout_ms must be positive")

    @property
    def url_check_timeout(self) -> float:
        """Per-request reachability timeout in seconds."""
        return self.url_check_timeout_ms / 1000

    @property
    def cache_path(self) -> Path:
        return self.cache_file or self.output_dir / CACHE_FILENAME

    @property
    def placeholder_image(self) -> str:
        return f"{self.site_url}{PLACEHOLDER_IMAGE_PATH}"

    def with_overrides(self, **overrides) -> Settings:
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise SettingsError(f"{name} must be true or false, got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise SettingsError(f"{name} must be an integer, got {raw!r}") from None


# Environment variable -> (settings field, parser)
_ENV_VARS = {
    "SITE_URL": ("site_url", lambda name, raw: raw.strip()),
    "API_URL": ("api_url", lambda name, raw: raw.strip()),
    "PRUNE_INVALID_URLS": ("prune_invalid_urls", _parse_bool),
    "CHECK_URL_STATUS": ("check_url_status", _parse_bool),
    "MAX_CONCURRENT_CHECKS": ("max_concurrent_checks", _parse_int),
    "URL_CHECK_TIMEOUT": ("url_check_timeout_ms", _parse_int),
    "SKIP_VALIDATION": ("skip_validation", _parse_bool),
    "USE_CLOUDSCRAPER": ("use_cloudscraper", _parse_bool),
    "LOG_LEVEL": ("log_level", lambda name, raw: raw.strip().upper()),
}

_PATH_FIELDS = {"output_dir", "secondary_dir", "cache_file"}


def _from_config_file(path: Path) -> dict:
    """Read the ``[settings]`` table of a TOML config file."""
    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except OSError as exc:
        raise SettingsError(f"cannot read config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise SettingsError(f"invalid TOML in {path}: {exc}") from exc

    table = config.get("settings", {})
    if not isinstance(table, dict):
        raise SettingsError(f"{path}: [settings] must be a table")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(table) - known)
    if unknown:
        raise SettingsError(f"{path}: unknown settings: {', '.join(unknown)}")

    values = dict(table)
    for name in _PATH_FIELDS & set(values):
        values[name] = Path(values[name]) if values[name] else None
    if "validation_command" in values:
        values["validation_command"] = tuple(values["validation_command"])
    return values


def load_settings(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Build :class:`Settings` from defaults, config file, and environment.

    Later sources win: module defaults < TOML ``[settings]`` table <
    environment variables.  CLI flags are applied afterwards by the caller
    through :meth:`Settings.with_overrides`.
    """
    environ = os.environ if environ is None else environ
    values: dict = {}

    if config_path is not None:
        values.update(_from_config_file(Path(config_path)))

    for var, (name, parse) in _ENV_VARS.items():
        raw = environ.get(var)
        if raw is not None and raw.strip():
            values[name] = parse(var, raw)

    return Settings(**values)
