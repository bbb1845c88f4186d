import structlog

from bitbucket_rest.config.config import Settings


def configure_logging(json: bool | None = None) -> None:
    """Install the structlog processor chain used by the client.

    JSON output is meant for log collectors; pass ``json=False`` for a
    human-readable console renderer during local use. When ``json`` is None
    the choice comes from ``BITBUCKET_LOG_JSON``.
    """
    if json is None:
        json = Settings().log_json
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            renderer,
        ]
    )
