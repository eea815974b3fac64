import sys

from synthetic_engine.runner import main

if __name__ == "__main__":
    sys.exit(main())
