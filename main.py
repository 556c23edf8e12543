"""
Entry point for the PhpMyDirectory → GeoDirectory converter.

Equivalent to the ``geodir-convert`` console script, e.g.::

    python main.py convert all --dry-run
"""

import sys

from geodir_converter.cli import main

if __name__ == "__main__":
    sys.exit(main())
