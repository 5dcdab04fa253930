import os
import sys
from mypy import api

# Ensure repository root is in sys.path so flatrecord can be imported when the
# script is run from the 'scripts' directory.
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

targets = sys.argv[1:] or ["flatrecord"]
stdout, stderr, exit_status = api.run(targets)
print(stdout, end="")
print(stderr, end="", file=sys.stderr)
sys.exit(exit_status)
