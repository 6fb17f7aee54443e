"""
Entry point for running procroute as a module: python -m procroute
"""

from procroute.cli.commands import app

if __name__ == "__main__":
    app()
