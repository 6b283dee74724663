"""Allow ``python -m errgroupcheck``."""

import sys

from errgroupcheck.main import main

sys.exit(main())
