"""Route modules mounted by :func:`mcp_telemetry.api.app.create_app`."""
