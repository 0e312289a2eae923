"""Allow ``python -m bwl_bulk_register``."""

from .cli import app

if __name__ == "__main__":
    app()
