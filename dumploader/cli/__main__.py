"""Allow ``python -m dumploader.cli`` execution."""

import sys

from dumploader.cli.load_dump import main

sys.exit(main())
