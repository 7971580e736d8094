"""Main entry point for the lendwise package."""

from lendwise.cli import main


if __name__ == "__main__":
    main()
