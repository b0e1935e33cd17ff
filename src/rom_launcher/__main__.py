"""rom-launcher entry point.

Supports: python -m rom_launcher
"""

import sys

from .app import main

if __name__ == "__main__":
    sys.exit(main())
