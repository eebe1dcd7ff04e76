"""Allow ``python -m conchshell``."""

from conchshell.cli import main

if __name__ == "__main__":
    main()
