"""Command-line tools for docingest.

- ``python -m docingest.cli`` / ``python -m docingest.cli.ingest`` --
  initialise the chunk store, register uploaded files and ingest them
  without running the web server.

Heavy imports (openai, FastAPI) are deferred inside the command handlers
so ``--help`` stays fast.
"""
