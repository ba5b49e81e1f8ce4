"""Allow running the CLI with ``python -m medialend``."""

from medialend.cli import main

if __name__ == "__main__":
    main()
