"""Main entry point for gh-cr."""

from ghcr.cli import app


def main() -> None:
    """Run the gh-cr CLI."""
    app()


if __name__ == "__main__":
    main()
