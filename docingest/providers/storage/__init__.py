"""Object storage providers for uploaded document bytes.

    LocalStorageProvider -- reads files under a root directory (development, CLI)
    HTTPStorageProvider  -- downloads from an object-storage REST API via httpx
"""
