"""
Run the calculator from a source checkout: python main.py --help
"""
import sys

from millcalc.cli import main

if __name__ == "__main__":
    sys.exit(main())
