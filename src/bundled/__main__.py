"""Allow ``python -m bundled``."""

from bundled._cli import main

main()
