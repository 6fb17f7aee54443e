"""HTTP transport server."""

from procroute.api.server import create_app, handle_rpc_request, run_server

__all__ = ["create_app", "handle_rpc_request", "run_server"]
