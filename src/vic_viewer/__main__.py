"""Module entrypoint.

Allows:
    python -m vic_viewer
"""

from __future__ import annotations

from vic_viewer.server.log_server import main

if __name__ == "__main__":
    main()
