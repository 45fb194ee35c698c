"""Runtime configuration helpers for the telemetry engine."""

from __future__ import annotations
from functools import lru_cache
from dynaconf import Dynaconf


_DEFAULTS: dict[str, object] = {
    "ENABLED": False,
    "API_URL": "https://analytics.plugged.in",
    "API_USERNAME": None,
    "API_PASSWORD": None,
    "CLIENT_ID": "pluggedin-app",
    "BATCH_SIZE": 50,
    "FLUSH_INTERVAL_SECONDS": 5.0,
    "REQUEST_TIMEOUT_SECONDS": 10.0,
    "ACTIVITY_DB_PATH": "mcp_activity.sqlite",
    "HOST": "0.0.0.0",
    "PORT": 8000,
}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _build_loader() -> Dynaconf:
    """Create a Dynaconf loader wired to environment variables only."""
    return Dynaconf(
        envvar_prefix="ANALYTICS",
        settings_files=[],  # No config files, env vars only
        load_dotenv=True,
        environments=False,
    )


def _to_bool(value: object, *, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    msg = f"ANALYTICS_{name} must be a boolean flag."
    raise ValueError(msg)


def _to_positive_int(value: object, *, name: str) -> int:
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError) as exc:
        msg = f"ANALYTICS_{name} must be an integer."
        raise ValueError(msg) from exc
    if number <= 0:
        msg = f"ANALYTICS_{name} must be greater than zero."
        raise ValueError(msg)
    return number


def _to_positive_float(value: object, *, name: str) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        msg = f"ANALYTICS_{name} must be a number."
        raise ValueError(msg) from exc
    if number <= 0:
        msg = f"ANALYTICS_{name} must be greater than zero."
        raise ValueError(msg)
    return number


def _normalize_settings(source: Dynaconf) -> Dynaconf:
    """Validate and fill defaults on the raw Dynaconf settings."""
    normalized = Dynaconf(
        envvar_prefix="ANALYTICS",
        settings_files=[],
        load_dotenv=False,
        environments=False,
    )

    enabled_raw = source.get("ENABLED", _DEFAULTS["ENABLED"])
    enabled = (
        bool(_DEFAULTS["ENABLED"])
        if enabled_raw is None
        else _to_bool(enabled_raw, name="ENABLED")
    )
    normalized.set("ENABLED", enabled)

    api_url = source.get("API_URL") or _DEFAULTS["API_URL"]
    normalized.set("API_URL", str(api_url).rstrip("/"))

    username = source.get("API_USERNAME")
    password = source.get("API_PASSWORD")
    if enabled and (not username or not password):
        msg = (
            "ANALYTICS_API_USERNAME and ANALYTICS_API_PASSWORD must be set "
            "when analytics is enabled."
        )
        raise ValueError(msg)
    normalized.set("API_USERNAME", str(username) if username else None)
    normalized.set("API_PASSWORD", str(password) if password else None)

    client_id = source.get("CLIENT_ID") or _DEFAULTS["CLIENT_ID"]
    normalized.set("CLIENT_ID", str(client_id))

    normalized.set(
        "BATCH_SIZE",
        _to_positive_int(
            source.get("BATCH_SIZE", _DEFAULTS["BATCH_SIZE"]), name="BATCH_SIZE"
        ),
    )
    normalized.set(
        "FLUSH_INTERVAL_SECONDS",
        _to_positive_float(
            source.get(
                "FLUSH_INTERVAL_SECONDS", _DEFAULTS["FLUSH_INTERVAL_SECONDS"]
            ),
            name="FLUSH_INTERVAL_SECONDS",
        ),
    )
    normalized.set(
        "REQUEST_TIMEOUT_SECONDS",
        _to_positive_float(
            source.get(
                "REQUEST_TIMEOUT_SECONDS", _DEFAULTS["REQUEST_TIMEOUT_SECONDS"]
            ),
            name="REQUEST_TIMEOUT_SECONDS",
        ),
    )

    db_path = source.get("ACTIVITY_DB_PATH") or _DEFAULTS["ACTIVITY_DB_PATH"]
    normalized.set("ACTIVITY_DB_PATH", str(db_path))

    host = source.get("HOST") or _DEFAULTS["HOST"]
    normalized.set("HOST", str(host))
    normalized.set(
        "PORT", _to_positive_int(source.get("PORT", _DEFAULTS["PORT"]), name="PORT")
    )

    return normalized


@lru_cache(maxsize=1)
def _load_settings() -> Dynaconf:
    """Load settings once and cache the normalized Dynaconf instance."""
    return _normalize_settings(_build_loader())


def get_settings(*, refresh: bool = False) -> Dynaconf:
    """Return the cached Dynaconf settings, reloading them if requested."""
    if refresh:
        _load_settings.cache_clear()
    return _load_settings()


__all__ = ["get_settings"]
