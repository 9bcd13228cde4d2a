"""Unified CLI for the HashTracks adapters.

Usage:
    python -m hashtracks.cli [command] [options]

Commands:
    scrape      Fetch events from sources
    sources     List configured sources
    version     Show version information
"""

from hashtracks.cli.main import app

__all__ = ["app"]
