"""rayscene — Entry Point."""
import sys

from rayscene.cli import main


if __name__ == "__main__":
    sys.exit(main())
