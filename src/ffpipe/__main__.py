"""Allow ``python -m ffpipe``."""

from ffpipe.cli import main

if __name__ == "__main__":
    main()
