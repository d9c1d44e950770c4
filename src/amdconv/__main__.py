"""Allow running as ``python -m amdconv``."""

from amdconv.cli import main

if __name__ == "__main__":
    main()
