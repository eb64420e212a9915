"""HTTP transport, request cache, resource clients and checkout."""
