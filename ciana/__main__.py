import sys

from ciana.cli import main

sys.exit(main())
