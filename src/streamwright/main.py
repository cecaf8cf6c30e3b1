"""
Entry point: run the tool server.
"""

import argparse
import sys

import uvicorn

from . import __version__
from .config.settings import get_settings
from .observability.logging import get_logger, setup_logging
from .observability.metrics import setup_metrics
from .observability.tracing import setup_tracing

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Streamwright tool server")
    parser.add_argument("--host", default=None, help="Host to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    parser.add_argument("--log-level", default=None, help="Log level (overrides settings)")
    parser.add_argument("--version", action="store_true", help="Show version")
    return parser


def main(argv=None):
    """Configure observability and serve the tool API."""
    args = build_parser().parse_args(argv if argv is not None else [])

    if args.version:
        print(f"Streamwright v{__version__}")
        return

    settings = get_settings()
    obs = settings.observability
    setup_logging(args.log_level or obs.log_level)

    tracing_manager = None
    if obs.enable_tracing:
        tracing_manager = setup_tracing(obs.service_name, obs.service_version, obs.otlp_endpoint)

    if obs.enable_metrics:
        from opentelemetry import metrics

        setup_metrics(metrics.get_meter(obs.service_name, obs.service_version))

    logger.info(
        "Streamwright starting",
        environment=settings.environment,
        control_plane=settings.control_plane.base_url,
        auth_enabled=settings.auth.enabled,
        tracing_enabled=obs.enable_tracing,
    )

    try:
        uvicorn.run(
            "streamwright.api.server:create_app",
            factory=True,
            host=args.host or settings.api.host,
            port=args.port or settings.api.port,
            log_level=(args.log_level or obs.log_level).lower(),
        )
    finally:
        if tracing_manager:
            tracing_manager.shutdown()
            logger.info("Tracing shutdown complete")


def cli_main():
    """CLI entry point."""
    try:
        main(sys.argv[1:])
        sys.exit(0)
    except KeyboardInterrupt:
        sys.exit(0)
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
