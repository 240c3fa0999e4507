"""
Main entry point for the fritzbox_aha package.

Allows running the client as: python -m fritzbox_aha
"""

from fritzbox_aha.cli import main

if __name__ == "__main__":
    main()
