import sys

from refnav.cli import main

sys.exit(main())
