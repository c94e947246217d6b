"""Allow ``python -m type3``."""

from type3.cli import main

if __name__ == "__main__":
    main()
