"""Entry point for 'python -m seedkeep' command."""

from seedkeep.cli import main

if __name__ == "__main__":
    main()
