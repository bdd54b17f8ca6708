"""Allow ``python -m gitsweep``."""

from gitsweep.cli import main

if __name__ == "__main__":
    main()
