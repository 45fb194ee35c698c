"""Command-line entrypoint serving the telemetry API with uvicorn."""

from __future__ import annotations
import uvicorn
from mcp_telemetry.config import get_settings


def main() -> None:
    """Run the API on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "mcp_telemetry.api.app:create_app",
        host=settings.host,
        port=settings.port,
        factory=True,
        log_config=None,
    )


__all__ = ["main"]


if __name__ == "__main__":  # pragma: no cover
    main()
