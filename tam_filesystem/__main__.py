"""Allow ``python -m tam_filesystem DIR [DIR ...]``."""

from tam_filesystem.server import main

main()
