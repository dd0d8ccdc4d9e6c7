"""Allow running as ``python -m msatrigger``."""

from msatrigger.cli import main

if __name__ == "__main__":
    main()
