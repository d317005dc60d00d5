"""Logging support for live_feed."""
