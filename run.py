"""Application entry point.

This module serves as the entry point for running the terminal chat client.
It parses the command line, wires the store, the agent and the session
service together, and starts the interactive loop.
"""

from chatterm.main import run

if __name__ == "__main__":
    run()
