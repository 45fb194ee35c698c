"""HTTP surface for telemetry ingestion, remote metrics and trending."""

from mcp_telemetry.api.app import create_app


__all__ = ["create_app"]
