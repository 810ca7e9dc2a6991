"""Allows ``python -m feedscribe``."""

import sys

from feedscribe.main import main

sys.exit(main())
