"""Process initialization: logging, storage, service container, shutdown."""
