"""Routing of tool calls to the translation components."""

from typing import Any, Dict, Mapping, Optional

from ..client.supabase_client import SupabaseRestClient
from ..config.settings import ServerConfig
from ..models import ToolName
from ..errors import (
    ErrorHandler,
    GatewayError,
    UnknownToolError,
    ValidationError,
    ErrorContext,
    get_logger,
    log_error,
    log_operation,
)
from .catalog import list_tools
from .query_translator import QueryTranslator
from .schema_inspector import SchemaInspector
from .schema_simulator import SchemaMutationSimulator


logger = get_logger(__name__)


def resolve_tool(name: Any) -> ToolName:
    """Map a wire name onto the closed ToolName set."""
    try:
        return ToolName(name)
    except ValueError:
        raise UnknownToolError(name, available=[tool.value for tool in ToolName])


class ToolDispatcher:
    """
    Top-level router for ``tools/call`` and ``tools/list``.

    Every failure leaves ``call_tool`` as a GatewayError, so transports only
    have to format one exception type.
    """

    def __init__(self, config: ServerConfig, client: Optional[SupabaseRestClient] = None):
        self.config = config
        self.client = client or SupabaseRestClient(config)
        self.query_translator = QueryTranslator(config, self.client)
        self.schema_inspector = SchemaInspector(config, self.client)
        self.schema_simulator = SchemaMutationSimulator()

    def list_tools(self) -> Dict[str, Any]:
        return list_tools()

    def call_tool(self, name: Any, arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute one tool call.

        Args:
            name: Tool name, one of the ToolName values
            arguments: Tool arguments; None is treated as an empty object

        Returns:
            The tool's result envelope

        Raises:
            GatewayError: Any failure, already classified
        """
        try:
            tool = resolve_tool(name)
            if arguments is None:
                arguments = {}
            if not isinstance(arguments, Mapping):
                raise ValidationError(
                    "arguments must be an object",
                    field="arguments",
                    context=ErrorContext(operation=tool.value)
                )

            log_operation(logger, "tool_call", tool=tool.value, argument_keys=sorted(arguments))

            if tool is ToolName.SUPABASE_QUERY:
                return self.query_translator.execute(arguments)
            elif tool is ToolName.SUPABASE_SCHEMA:
                return self.schema_inspector.execute(arguments)
            elif tool is ToolName.SUPABASE_MODIFY_SCHEMA:
                return self.schema_simulator.execute(arguments)
            raise AssertionError(f"unhandled tool {tool}")

        except Exception as e:
            gateway_error = ErrorHandler.handle_gateway_error(e, operation=str(name))
            log_error(logger, gateway_error, operation=str(name))
            if gateway_error is e:
                raise
            raise gateway_error from e
