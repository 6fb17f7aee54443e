"""FastAPI transport server: binds a Router to one HTTP path.

Per request: Received -> Decoded -> Dispatched(1..N calls) -> Encoded -> Sent.
A decode failure short-circuits with HTTP 400 and one top-level error; every
decoded call is dispatched independently of its siblings.
"""

from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from procroute import __version__
from procroute.config.schema import ServerConfig
from procroute.rpc.codec import decode_request, encode_envelope_error, encode_results
from procroute.rpc.dispatch_pipeline import dispatch_batch, run_handler_pipeline
from procroute.rpc.error_boundary import (
    method_not_supported_result,
    result_http_status,
)
from procroute.rpc.messages import Call, CallResult
from procroute.rpc.procedures import ProcedureKind
from procroute.rpc.router import Router
from procroute.utils.exceptions import (
    ErrorCode,
    MalformedEnvelopeError,
    ProcrouteError,
    classify_exception,
    classify_http_status,
    sanitize_error_message,
)


def _reject_mutation_over_get(call: Call, http_method: str) -> CallResult | None:
    if http_method == "GET" and ProcedureKind(call.kind) is ProcedureKind.MUTATION:
        return method_not_supported_result(name=call.name, http_method=http_method)
    return None


async def handle_rpc_request(
    router: Router,
    body: bytes | str | Any,
    *,
    http_method: str = "POST",
) -> tuple[int, Any]:
    """Decode, dispatch and encode one HTTP request. Returns (status, payload)."""
    try:
        calls, is_batch = decode_request(body)
    except MalformedEnvelopeError as e:
        logger.warning("RPC malformed envelope via {}: {}", http_method, e.message)
        return classify_http_status(e.code), encode_envelope_error(e)

    logger.debug("RPC {} request with {} call(s), batch={}", http_method, len(calls), is_batch)

    async def _dispatch(call: Call) -> CallResult:
        rejected = await run_handler_pipeline((lambda: _reject_mutation_over_get(call, http_method),))
        if rejected is not None:
            return rejected
        return await router.dispatch(call)

    results = await dispatch_batch(calls, _dispatch)
    if is_batch:
        return 200, encode_results(results, batch=True)
    payload = encode_results(results, batch=False)
    if results[0].ok and not payload["ok"]:
        # Output could not be encoded as JSON.
        return classify_http_status(payload["error"]["code"]), payload
    return result_http_status(results[0]), payload


def create_app(router: Router, *, server_config: ServerConfig | None = None) -> FastAPI:
    """Create the FastAPI application serving ``router``."""
    cfg = server_config or ServerConfig()
    app = FastAPI(
        title="procroute",
        description="Typed procedure calls over HTTP with request batching",
        version=__version__,
    )
    app.state.router = router

    @app.exception_handler(ProcrouteError)
    async def procroute_exception_handler(request: Request, exc: ProcrouteError):
        return JSONResponse(
            status_code=classify_http_status(exc.code, exc.category),
            content={"error": exc.to_dict()},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        code, _category = classify_exception(exc)
        logger.exception("Unhandled exception [{}]: {}", code, sanitize_error_message(str(exc)))
        return JSONResponse(
            status_code=500,
            content={"error": {"code": ErrorCode.INTERNAL.value, "message": "An unexpected error occurred"}},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.post(cfg.path)
    async def rpc_post(request: Request) -> JSONResponse:
        """Invoke one call or a batch of calls."""
        body = await request.body()
        status_code, payload = await handle_rpc_request(router, body, http_method="POST")
        return JSONResponse(status_code=status_code, content=payload)

    @app.get(cfg.path)
    async def rpc_get(envelope: str | None = None) -> JSONResponse:
        """Invoke queries; the envelope travels in the ``envelope`` query parameter."""
        if envelope is None:
            exc = MalformedEnvelopeError("missing 'envelope' query parameter")
            logger.warning("RPC malformed envelope via GET: {}", exc.message)
            return JSONResponse(status_code=400, content=encode_envelope_error(exc))
        status_code, payload = await handle_rpc_request(router, envelope, http_method="GET")
        return JSONResponse(status_code=status_code, content=payload)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok", "procedures": sorted(router)}

    logger.info("procroute app ready: {} procedure(s) at {}", len(router), cfg.path)
    return app


def run_server(router: Router, host: str = "127.0.0.1", port: int = 3000, path: str = "/trpc") -> None:
    """Run the RPC server (blocks)."""
    app = create_app(router, server_config=ServerConfig(host=host, port=port, path=path))
    logger.info("Starting procroute server on http://{}:{}{}", host, port, path)
    uvicorn.run(
        app,
        host=host,
        port=port,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=10,
        log_level="warning",
    )
