"""Core configuration, diagnostics and build orchestration."""
