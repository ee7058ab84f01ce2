"""Run the command-line tool with ``python -m git_version``."""

from .cli import main

if __name__ == '__main__':
    main()
