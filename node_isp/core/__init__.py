"""Core functionality for Node ISP: reconciliation, output streaming and state."""
