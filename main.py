import os
import sys

# Inject the ldes-explorer directory into sys.path so the explorer package resolves
# when running from a checkout without installing.
sys.path.append(os.path.join(os.path.dirname(__file__), "ldes-explorer"))

from explorer.cli import main

if __name__ == "__main__":
    sys.exit(main())
