"""OpenAPI (REST) surface of the server."""
