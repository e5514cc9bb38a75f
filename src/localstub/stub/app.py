"""
LocalStub Local HTTP Server

FastAPI application that answers every incoming request from a StubServer,
for applications under test that are pointed at a local base URL instead of
having their transport patched.

Features:
- Catch-all route dispatching through the stub engine
- Admin API for routes, state and metrics
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .methods import HTTPMethod
from .request import StubRequest
from .server import StubServer, StubMetrics

# Hop-by-hop headers the ASGI server computes itself
_HEADERS_TO_SKIP = {'content-length', 'transfer-encoding', 'connection'}


def create_app(server: StubServer) -> FastAPI:
    """
    Create a FastAPI application serving `server`.

    Args:
        server: Stub server answering requests

    Returns:
        FastAPI application
    """
    config = server.config
    app = FastAPI(
        title="LocalStub Server",
        description="Local HTTP server answering requests from registered stubs",
        version="1.0.0"
    )

    # Admin API routes
    if config.admin_enabled:
        @app.get(f"{config.admin_prefix}/metrics")
        async def get_metrics():
            """Get dispatch metrics."""
            return JSONResponse(content=server.metrics.to_dict())

        @app.post(f"{config.admin_prefix}/reset")
        async def reset_metrics():
            """Reset metrics."""
            server.metrics = StubMetrics()
            return JSONResponse(content={'status': 'reset'})

        @app.get(f"{config.admin_prefix}/routes")
        async def list_routes():
            """List registered routes in match order."""
            routes = server.routes()
            return JSONResponse(content={'total': len(routes), 'routes': routes})

        @app.get(f"{config.admin_prefix}/state")
        async def get_state():
            """Get stored state and candidates for every stateful route."""
            return JSONResponse(content=server.state.snapshot())

        @app.post(f"{config.admin_prefix}/state")
        async def set_state(request: Request):
            """Set the stored state of one key."""
            try:
                body = await request.json()
            except ValueError:
                return JSONResponse(status_code=400, content={'error': 'Body must be JSON'})
            if not isinstance(body, dict):
                return JSONResponse(status_code=400, content={'error': 'Body must be a JSON object'})

            key = body.get('key')
            if not key:
                return JSONResponse(status_code=400, content={'error': "Missing 'key'"})

            server.set_state(key, body.get('state'))
            return JSONResponse(content={'key': key, 'state': server.state.current(key)})

        @app.delete(f"{config.admin_prefix}/state")
        async def reset_state(key: Optional[str] = None):
            """Reset stored state for one key, or all keys."""
            server.reset_state(key)
            return JSONResponse(content={'status': 'reset', 'key': key})

    # Main catch-all route for stubbing
    @app.api_route("/{path:path}", methods=[m.value for m in HTTPMethod])
    async def stub_request(request: Request, path: str):
        """Answer an incoming request from the stub engine."""
        stub_request = StubRequest(
            method=request.method,
            url=str(request.url),
            headers=dict(request.headers),
            body=await request.body()
        )
        stub_response = server.dispatch(stub_request)

        headers = {
            k: v for k, v in stub_response.headers.items()
            if k.lower() not in _HEADERS_TO_SKIP
        }
        return Response(
            content=stub_response.body,
            status_code=stub_response.status_code,
            headers=headers
        )

    return app


def run(server: StubServer, host: Optional[str] = None, port: Optional[int] = None, access_log: bool = True):
    """
    Serve `server` over HTTP with uvicorn.

    Args:
        server: Stub server answering requests
        host: Host to bind to (overrides config)
        port: Port to bind to (overrides config)
        access_log: Enable uvicorn access logging
    """
    app = create_app(server)
    actual_host = host or server.config.host
    actual_port = port or server.config.port

    print(f"LocalStub server starting...")
    print(f"   Host: {actual_host}:{actual_port}")
    print(f"   Routes registered: {len(server.routes())}")

    if server.config.admin_enabled:
        print(f"   Admin API: http://{actual_host}:{actual_port}{server.config.admin_prefix}/routes")

    print()

    uvicorn.run(
        app,
        host=actual_host,
        port=actual_port,
        log_level=server.config.log_level,
        access_log=access_log
    )
