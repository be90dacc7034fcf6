"""Command line interface for Node ISP."""
