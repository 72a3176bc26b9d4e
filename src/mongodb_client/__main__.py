"""Module entrypoint to run `python -m mongodb_client`."""

import sys

from mongodb_client.cli import main

if __name__ == "__main__":
    sys.exit(main())
