"""Allow ``python -m src.cli`` execution; runs the scan command."""

import sys

from src.cli.scan import main

sys.exit(main())
