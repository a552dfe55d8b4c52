"""Adapters around third-party engines: Markdown, Mermaid and Vivliostyle."""
