"""Main entry point for Cachecast CLI.

Usage:
    python -m cachecast --help
    cachecast --help  # If installed via pip/uv
"""

from cachecast.cli import main

if __name__ == "__main__":
    main()
