"""
Package entry point.

Allows running with: python -m umeradio
"""

import sys

from umeradio.app.radio import main

if __name__ == "__main__":
    sys.exit(main())
