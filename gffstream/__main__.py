"""Entry point for `python -m gffstream`."""

import sys

from gffstream.cli import main

sys.exit(main())
