"""
Entry point for running picam-detect as a module.

Usage:
    python -m picam_detect capture
"""

from .cli import main

if __name__ == "__main__":
    main()
