import sys

from sleepbot.cli import main

sys.exit(main())
