"""Allow ``python -m bulkcast``."""

from __future__ import annotations

import sys

from bulkcast.cli import main

if __name__ == "__main__":
    sys.exit(main())
