"""HTTP server exposing the gateway's ``/mcp`` endpoint."""

import time
from typing import Any, Dict, Optional

import uvicorn
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .client.supabase_client import SupabaseRestClient
from .config.settings import ServerConfig, SERVICE_NAME, SERVICE_VERSION
from .models import utc_timestamp
from .tools.catalog import tool_operations
from .tools.dispatcher import ToolDispatcher
from .errors import (
    ErrorHandler,
    GatewayError,
    UnknownMethodError,
    ValidationError,
    ErrorContext,
    get_logger,
    log_error,
    log_operation,
)


logger = get_logger(__name__)

AVAILABLE_METHODS = ["tools/list", "tools/call"]
FEATURES = ["crud", "schema_query", "schema_modify_simulation"]


class SupabaseGatewayServer:
    """Owns the configuration and dispatcher and serves them over HTTP."""

    def __init__(self, config: ServerConfig, dispatcher: Optional[ToolDispatcher] = None):
        self.config = config
        self.dispatcher = dispatcher or ToolDispatcher(config, SupabaseRestClient(config))
        self._start_time = time.time()
        log_operation(
            logger,
            "server_initialized",
            environment=config.environment,
            supabase_configured=config.is_backend_configured,
        )

    # -- endpoints -----------------------------------------------------

    async def mcp_endpoint(self, request: Request) -> JSONResponse:
        """Single protocol endpoint: ``{method, params}`` in, ``{result}`` out."""
        try:
            payload = await request.json()
        except ValueError:
            return JSONResponse(
                {"error": "Request body must be valid JSON", "availableMethods": AVAILABLE_METHODS},
                status_code=400,
            )

        method = payload.get("method") if isinstance(payload, dict) else None
        if not method:
            return JSONResponse(
                {"error": "Method is required", "availableMethods": AVAILABLE_METHODS},
                status_code=400,
            )

        try:
            if method == "tools/list":
                result = self.dispatcher.list_tools()
            elif method == "tools/call":
                result = await run_in_threadpool(self._call_tool, payload.get("params"))
            else:
                raise UnknownMethodError(method, available=AVAILABLE_METHODS)
            return JSONResponse({"result": result})

        except UnknownMethodError as e:
            log_operation(logger, "unknown_method", method=str(method), level="warning")
            return JSONResponse(
                {"error": e.get_user_message(), "availableMethods": AVAILABLE_METHODS},
                status_code=e.status_code,
            )
        except Exception as e:
            return self._error_response(e, operation=str(method))

    def _call_tool(self, params: Any) -> Dict[str, Any]:
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise ValidationError(
                "params must be an object with 'name' and 'arguments'",
                field="params",
                context=ErrorContext(operation="tools/call")
            )
        return self.dispatcher.call_tool(params.get("name"), params.get("arguments"))

    def _error_response(self, error: Exception, operation: str) -> JSONResponse:
        gateway_error = ErrorHandler.handle_gateway_error(error, operation=operation)
        if not isinstance(error, GatewayError):
            log_error(logger, gateway_error, operation=operation)

        status_code, body = ErrorHandler.to_http_response(
            gateway_error,
            include_details=not self.config.is_production,
            secrets=self.config.secrets,
        )
        return JSONResponse(body, status_code=status_code)

    async def health_endpoint(self, request: Request) -> JSONResponse:
        return JSONResponse(self.health())

    async def diagnostics_endpoint(self, request: Request) -> JSONResponse:
        return JSONResponse(self.diagnostics())

    # -- reports ---------------------------------------------------------

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": utc_timestamp(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
        }

    def diagnostics(self) -> Dict[str, Any]:
        """Server, tool and environment summary. Never includes the credential."""
        tools = self.dispatcher.list_tools()["tools"]
        return {
            "server_info": {
                "name": SERVICE_NAME,
                "version": SERVICE_VERSION,
                "status": "running",
                "uptime_seconds": round(time.time() - self._start_time, 3),
                "features": FEATURES,
            },
            "available_tools": [
                {
                    "name": tool["name"],
                    "description": tool["description"],
                    "operations": tool_operations(tool),
                }
                for tool in tools
            ],
            "endpoints": {
                "mcp": "/mcp",
                "health": "/health",
                "diagnostics": "/diagnostics",
            },
            "environment": {
                "environment": self.config.environment,
                "port": self.config.port,
                "supabase_configured": self.config.is_backend_configured,
            },
        }

    # -- lifecycle -------------------------------------------------------

    def build_app(self) -> Starlette:
        return Starlette(
            routes=[
                Route("/mcp", self.mcp_endpoint, methods=["POST"]),
                Route("/health", self.health_endpoint, methods=["GET"]),
                Route("/diagnostics", self.diagnostics_endpoint, methods=["GET"]),
            ],
            middleware=[
                Middleware(
                    CORSMiddleware,
                    allow_origins=["*"],
                    allow_methods=["GET", "POST", "OPTIONS"],
                    allow_headers=["*"],
                ),
            ],
        )

    def run_http(self) -> None:
        """Serve HTTP until interrupted."""
        log_operation(
            logger,
            "http_server_starting",
            host=self.config.host,
            port=self.config.port,
            supabase_configured=self.config.is_backend_configured,
        )
        uvicorn.run(
            self.build_app(),
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
        )

    def run_stdio(self) -> None:
        """Serve the same tools over the MCP stdio transport."""
        from .tools.mcp_tools import app, initialize_dispatcher

        initialize_dispatcher(self.dispatcher)
        log_operation(logger, "stdio_server_starting")
        app.run(transport="stdio")

    def stop(self) -> None:
        self.dispatcher.client.close()
        log_operation(logger, "server_stopped")


def create_app(config: Optional[ServerConfig] = None) -> Starlette:
    """ASGI factory, e.g. ``uvicorn supabase_gateway_mcp.server:create_app --factory``."""
    return SupabaseGatewayServer(config or ServerConfig.from_env()).build_app()
