import sys

from brokerconf.cli import main

sys.exit(main())
