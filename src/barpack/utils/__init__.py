"""Utilities package for the bar-pack application."""
