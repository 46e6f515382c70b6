"""Entry point for ``python -m timed_captions``."""

from timed_captions.cli import main

if __name__ == "__main__":
    main()
