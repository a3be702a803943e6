"""Entry point for ``python -m hyperconnect``."""

from .cli import main

main()
