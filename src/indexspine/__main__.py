"""Allow ``python -m indexspine``."""

from indexspine.cli.app import app

if __name__ == "__main__":
    app()
