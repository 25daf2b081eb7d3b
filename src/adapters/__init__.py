"""Adapters: I/O against the GitHub API and the log archive."""
