"""Plugins bundled with plinth."""
