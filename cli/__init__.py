"""Command line client for the LiveDash service."""
