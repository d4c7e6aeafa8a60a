"""Allow running the renderer with ``python -m raybow``."""

import sys

from raybow.cli import main

sys.exit(main())
