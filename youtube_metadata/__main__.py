"""Allow ``python -m youtube_metadata``."""

from .cli import main

if __name__ == "__main__":
    main()
