"""structlog setup for dump loads.

Loads are long-running batch jobs, so log output has two audiences: a person
watching a terminal and a job runner collecting lines.  Both get the same
events (``load_stream_progress``, ``batch_committed``, ...) from one shared
processor chain; only the final renderer differs:

    development  -> ConsoleRenderer (colours only when stderr is a TTY)
    production   -> JSONRenderer, one object per line

The environment name comes from the resolved configuration (``app.env`` /
``APP_ENV``) and is passed in by the caller.  Everything goes to stderr so
the CLI summary on stdout stays machine-readable.

aiosqlite and httpx log every statement and request at DEBUG; they are held
at WARNING unless the loader itself runs at DEBUG.
"""

import logging
import os
import sys

import structlog

_CHATTY_LIBRARIES = ("aiosqlite", "httpx", "httpcore")


def _renderer(app_env: str, json_output: bool) -> structlog.types.Processor:
    if json_output or app_env == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    app_env: str | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and bridge stdlib logging into it.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON lines regardless of the environment.
        app_env: Environment name from the resolved configuration.  Falls
                 back to the ``APP_ENV`` variable when not given.

    Returns:
        A configured structlog BoundLogger.
    """
    level = log_level.upper()
    if app_env is None:
        app_env = os.environ.get("APP_ENV", "development")
    renderer = _renderer(app_env, json_output)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = logging.DEBUG if level == "DEBUG" else logging.WARNING
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)
