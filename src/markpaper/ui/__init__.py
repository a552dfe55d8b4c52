"""User interfaces for MarkPaper."""
