"""Service infrastructure: logging, configuration, storage and the REST API."""
