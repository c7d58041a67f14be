"""Main entry point for the Supabase Gateway MCP server."""

import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from supabase_gateway_mcp.config.settings import ServerConfig, SERVICE_NAME, SERVICE_VERSION
from supabase_gateway_mcp.server import SupabaseGatewayServer
from supabase_gateway_mcp.errors import (
    setup_logging,
    get_logger,
    log_error,
    log_operation,
    ErrorHandler,
    ErrorContext,
)


@click.command()
@click.option(
    "--supabase-url",
    envvar="SUPABASE_URL",
    help="Supabase project URL, e.g. https://xyz.supabase.co",
)
@click.option(
    "--service-role-key",
    envvar="SUPABASE_SERVICE_ROLE_KEY",
    help="Supabase service-role key",
)
@click.option("--host", envvar="HOST", help="Interface to bind the HTTP server to")
@click.option("--port", envvar="PORT", type=int, help="Port for the HTTP server")
@click.option(
    "--environment",
    envvar="ENVIRONMENT",
    type=click.Choice(["development", "test", "production"]),
    help="Deployment environment; error details are hidden in production",
)
@click.option(
    "--log-level",
    envvar="LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.option(
    "--log-file",
    envvar="LOG_FILE",
    type=click.Path(),
    help="Path to log file (optional)",
)
@click.option(
    "--config-file",
    type=click.Path(exists=True),
    help="Path to configuration file (.env format)",
)
@click.option(
    "--transport",
    type=click.Choice(["http", "stdio"]),
    default="http",
    show_default=True,
    help="Serve the /mcp HTTP endpoint or the MCP stdio transport",
)
@click.option(
    "--structured-logging/--no-structured-logging",
    default=None,
    help="Enable structured JSON logging",
)
@click.option(
    "--validate-config",
    is_flag=True,
    help="Validate configuration and exit",
)
@click.option(
    "--status",
    is_flag=True,
    help="Show configuration status and exit",
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version information and exit",
)
def main(
    supabase_url: Optional[str],
    service_role_key: Optional[str],
    host: Optional[str],
    port: Optional[int],
    environment: Optional[str],
    log_level: Optional[str],
    log_file: Optional[str],
    config_file: Optional[str],
    transport: str,
    structured_logging: Optional[bool],
    validate_config: bool,
    status: bool,
    version: bool,
) -> None:
    """Start the Supabase Gateway MCP server."""

    if version:
        _show_version()
        return

    try:
        if config_file:
            _load_config_file(config_file)

        config = ServerConfig.from_env().with_overrides(
            supabase_url=supabase_url,
            service_role_key=service_role_key,
            host=host,
            port=port,
            environment=environment,
            log_level=log_level.upper() if log_level else None,
            log_file=log_file,
            structured_logging=structured_logging,
        )

        if validate_config:
            _validate_configuration_mode(config)
            return

        if status:
            _show_status_mode(config)
            return

        config.validate()

        setup_logging(
            level=config.log_level,
            log_file=config.log_file,
            structured=config.structured_logging,
            redact_values=config.secrets,
        )
        logger = get_logger(__name__)

        log_operation(
            logger,
            "server_startup_initiated",
            transport=transport,
            environment=config.environment,
            supabase_configured=config.is_backend_configured,
            log_level=config.log_level,
        )

        server = SupabaseGatewayServer(config)
        try:
            if transport == "stdio":
                server.run_stdio()
            else:
                server.run_http()
        except KeyboardInterrupt:
            log_operation(logger, "keyboard_interrupt_received")
        finally:
            server.stop()

    except Exception as e:
        logger = get_logger(__name__)
        context = ErrorContext(operation="main_startup")
        gateway_error = ErrorHandler.handle_gateway_error(e, operation="main_startup", context=context)
        log_error(logger, gateway_error, operation="main_startup")

        click.echo(f"Error starting server: {gateway_error.get_user_message()}", err=True)
        click.echo(f"Technical details: {gateway_error.get_technical_details()}", err=True)
        sys.exit(1)


def _load_config_file(config_file: str) -> None:
    """Load configuration from a .env file, overriding the process environment."""
    config_path = Path(config_file)
    if not config_path.exists():
        raise click.ClickException(f"Configuration file not found: {config_file}")

    load_dotenv(config_path, override=True)
    click.echo(f"Loaded configuration from: {config_file}", err=True)


def _mask(value: Optional[str]) -> str:
    if not value:
        return "Not set"
    return value[:4] + "..." if len(value) > 8 else "***"


def _validate_configuration_mode(config: ServerConfig) -> None:
    """Validate configuration and exit."""
    try:
        config.validate()
    except Exception as e:
        click.echo(f"✗ Configuration validation failed: {e}", err=True)
        sys.exit(1)

    click.echo("✓ Configuration is valid")
    if not config.is_backend_configured:
        click.echo(
            f"  ! Data operations will fail until {', '.join(config.missing_backend_settings)} is set"
        )


def _show_status_mode(config: ServerConfig) -> None:
    """Show configuration status without leaking the credential."""
    click.echo(f"{SERVICE_NAME} v{SERVICE_VERSION}")
    click.echo("=" * 40)

    click.echo("\nSupabase:")
    click.echo(f"  URL: {config.supabase_url or 'Not set'}")
    click.echo(f"  Service Key: {_mask(config.service_role_key)}")
    timeout = f"{config.request_timeout}s" if config.request_timeout else "disabled"
    click.echo(f"  Request Timeout: {timeout}")

    click.echo("\nServer:")
    click.echo(f"  Bind: {config.host}:{config.port}")
    click.echo(f"  Environment: {config.environment}")
    click.echo(f"  Log Level: {config.log_level}")
    if config.log_file:
        click.echo(f"  Log File: {config.log_file}")
    click.echo(f"  Structured Logging: {'Enabled' if config.structured_logging else 'Disabled'}")

    click.echo("\nValidation:")
    try:
        config.validate()
        click.echo("  ✓ Configuration is valid")
    except Exception as e:
        click.echo(f"  ✗ Configuration error: {e}")


def _show_version() -> None:
    """Show version information and exit."""
    try:
        import importlib.metadata
        version = importlib.metadata.version("supabase-gateway-mcp")
    except importlib.metadata.PackageNotFoundError:
        version = SERVICE_VERSION

    click.echo(f"Supabase Gateway MCP Server v{version}")
    click.echo("PostgREST translation gateway for Model Context Protocol tools")


if __name__ == "__main__":
    main()
