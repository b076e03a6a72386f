"""Entry point for ``python -m golem``."""

from golem.cli import main

if __name__ == "__main__":
    main()
