"""Package entry point for ``python -m script_studio``."""

from script_studio.cli import main

if __name__ == "__main__":
    main()
