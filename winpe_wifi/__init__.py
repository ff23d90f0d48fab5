"""WinPE Wi-Fi image customizer.

Core design goals:
- One boot.wim per run, given explicitly or found on removable media
- Idempotent edits inside the mounted image
- A mount is always committed or discarded, never left open
- Centralized logging
"""

__all__ = []
