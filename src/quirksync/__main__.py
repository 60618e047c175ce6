"""Allow ``python -m quirksync``."""

from quirksync.cli import main

main()
