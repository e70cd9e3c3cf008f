"""Allow ``python -m assetflow``."""

import sys

from .cli import main

sys.exit(main())
