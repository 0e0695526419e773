"""Cross-cutting error and outcome types."""
