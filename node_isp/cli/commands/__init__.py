"""CLI commands for Node ISP."""
