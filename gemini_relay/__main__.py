"""
Entry point for running the relay package as a script.

Usage:
    python -m gemini_relay
    python -m gemini_relay run --port 3000
"""

from gemini_relay.cli import main

if __name__ == "__main__":
    main()
