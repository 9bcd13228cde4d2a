"""Entry point for running CLI as module.

Usage:
    python -m hashtracks.cli scrape --source london-hash
    python -m hashtracks.cli sources --type ICAL_FEED
"""

from hashtracks.cli.main import main

if __name__ == "__main__":
    main()
