"""Allow ``python -m monolaunch``."""

import sys

from monolaunch.cli import main

sys.exit(main())
