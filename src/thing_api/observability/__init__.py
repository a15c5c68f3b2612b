"""Logging, request correlation and metrics for thing-api."""
