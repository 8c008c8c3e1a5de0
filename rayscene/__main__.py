import sys

from rayscene.cli import main

sys.exit(main())
