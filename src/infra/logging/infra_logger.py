"""
Purpose
-------
Provide the structured logger shared by the reservoir sampling engine and its
command-line driver.

Key behaviors
-------------
- Emits one structured entry per call (`emit`) carrying run metadata and an
  event-specific context payload.
- Drops entries below the configured level threshold before any work.
- Serializes entries as JSON (default) or as one human-readable text line.
- Writes to STDERR or appends to a file.
- Never raises on bad configuration: invalid level, format, or destination
  fall back to defaults and a WARNING is emitted for each fallback.

Conventions
-----------
- Levels: DEBUG < INFO < WARNING < ERROR; the default is INFO.
- The level is chosen by the caller; format and destination come from the
  `RESERVOIR_LOG_FORMAT` and `RESERVOIR_LOG_DEST` environment variables.
- Event names are snake_case; timestamps are UTC ISO-8601 with a "Z" suffix.

Downstream usage
----------------
    logger = initialize_logger("sampling.reservoir_engine", level="DEBUG")
    logger.info("reservoir_initialized", context={"capacity": 10})
"""

import datetime as dt
import json
import os
import sys
from typing import TypedDict

LEVEL_MAPPING: dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}
LOG_FORMATS: set[str] = {"json", "text"}
FORMAT_ENV_VAR: str = "RESERVOIR_LOG_FORMAT"
DEST_ENV_VAR: str = "RESERVOIR_LOG_DEST"


class LogEntry(TypedDict):
    """
    Purpose
    -------
    Shape of a single structured log entry.

    Fields
    ------
    timestamp : str
        UTC ISO-8601 timestamp with a "Z" suffix.
    level : str
        Severity ("DEBUG", "INFO", "WARNING", "ERROR").
    run_id : str
        Identifier correlating entries of one run.
    component : str
        Name of the emitting component.
    event : str
        Machine-readable snake_case event name.
    message : str
        Human-readable message.
    run_meta : dict
        Run-scoped metadata attached at initialization.
    context : dict
        Event-specific payload.
    """

    timestamp: str
    level: str
    run_id: str
    component: str
    event: str
    message: str
    run_meta: dict
    context: dict


class InfraLogger:
    """
    Purpose
    -------
    Structured logger with a level threshold, a fixed output format, and a
    single destination.

    Parameters
    ----------
    component_name : str
        Component label propagated into every entry.
    run_id : str
        Identifier used to correlate entries from the same run.
    run_meta : dict
        Run-scoped metadata serialized into every entry.
    log_level : str, default="INFO"
        Minimum level that is written.
    log_format : str, default="json"
        "json" or "text".
    log_dest : str, default="stderr"
        "stderr" or a file path opened in append mode.

    Notes
    -----
    - JSON serialization falls back to `default=str` for values such as numpy
      scalars or arbitrary sampled items.
    """

    def __init__(
        self,
        component_name: str,
        run_id: str,
        run_meta: dict,
        log_level: str = "INFO",
        log_format: str = "json",
        log_dest: str = "stderr",
    ) -> None:
        self.component_name = component_name
        self.run_id = run_id
        self.run_meta = run_meta
        self.level = log_level
        self.format = log_format
        self.dest = log_dest

    def emit(
        self, event: str, level: str = "INFO", msg: str | None = None, context: dict | None = None
    ) -> None:
        """
        Emit one structured entry if `level` meets the threshold.

        Parameters
        ----------
        event : str
            Snake_case event name.
        level : str, default="INFO"
            Severity of the entry.
        msg : str, optional
            Human-readable message; normalized to "".
        context : dict, optional
            Event payload; normalized to {}.

        Returns
        -------
        None
        """

        if LEVEL_MAPPING[level] < LEVEL_MAPPING[self.level]:
            return
        entry: LogEntry = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "run_id": self.run_id,
            "component": self.component_name,
            "event": event,
            "message": msg if msg is not None else "",
            "run_meta": self.run_meta,
            "context": context if context is not None else {},
        }
        self.write_entry(self.format_entry(entry))

    def debug(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="DEBUG", msg=msg, context=context)

    def info(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="INFO", msg=msg, context=context)

    def warning(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="WARNING", msg=msg, context=context)

    def error(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="ERROR", msg=msg, context=context)

    def format_entry(self, entry: LogEntry) -> str:
        """
        Serialize an entry in the configured format.

        Returns
        -------
        str
            A JSON object, or a text line of the form
            `<timestamp> [<LEVEL>] <component> <event> - <message> k=v ...`.
        """

        if self.format == "json":
            return json.dumps(entry, ensure_ascii=False, default=str)
        context_str = " ".join(f"{k}={v}" for k, v in entry["context"].items())
        return (
            f"{entry['timestamp']} [{entry['level']}] "
            f"{entry['component']} {entry['event']} - {entry['message']} "
            f"{context_str}"
        ).rstrip()

    def write_entry(self, formatted_entry: str) -> None:
        """Write one serialized entry to STDERR or append it to the destination file."""

        if self.dest == "stderr":
            print(formatted_entry, file=sys.stderr)
        else:
            with open(self.dest, "a", encoding="utf-8") as f:
                f.write(formatted_entry + "\n")


def initialize_logger(
    component_name: str,
    level: str = "INFO",
    run_id: str | None = None,
    run_meta: dict | None = None,
) -> InfraLogger:
    """
    Build an `InfraLogger` from an explicit level and environment overrides.

    Parameters
    ----------
    component_name : str
        Name of the component using the logger.
    level : str, default="INFO"
        Minimum level; case-insensitive, invalid values fall back to INFO.
    run_id : str, optional
        Run identifier; generated from the component name when omitted.
    run_meta : dict, optional
        Run metadata; defaults to {}.

    Returns
    -------
    InfraLogger
        Configured logger. Fallback warnings have already been emitted on it.
    """

    fall_backs: dict[str, str | None] = {}
    log_level = resolve_level(level, fall_backs)
    log_format, log_dest = extract_env_vars(fall_backs)

    if run_id is None:
        run_id = generate_run_id(component_name)

    if run_meta is None:
        run_meta = {}

    logger = InfraLogger(
        component_name=component_name,
        run_id=run_id,
        run_meta=run_meta,
        log_level=log_level,
        log_format=log_format,
        log_dest=log_dest,
    )
    handle_fallbacks(logger, fall_backs)
    return logger


def resolve_level(level: str, fall_backs: dict[str, str | None]) -> str:
    """Uppercase `level`, falling back to INFO (and recording it) when unknown."""

    up_level = level.upper()
    if up_level not in LEVEL_MAPPING:
        fall_backs["level"] = level
        return "INFO"
    return up_level


def extract_env_vars(fall_backs: dict[str, str | None]) -> tuple[str, str]:
    """
    Read and validate the log format and destination from the environment.

    Parameters
    ----------
    fall_backs : dict[str, str | None]
        Mutable record of invalid raw values keyed by "log_format" or
        "log_dest"; only keys whose defaults had to be applied are added.

    Returns
    -------
    tuple[str, str]
        Normalized (format, destination).

    Notes
    -----
    - A non-"stderr" destination is probed by opening it in append mode; on
      `OSError` the destination falls back to "stderr".
    """

    log_format: str = os.environ.get(FORMAT_ENV_VAR, "json")
    log_dest: str = os.environ.get(DEST_ENV_VAR, "stderr")

    if log_format.lower() not in LOG_FORMATS:
        fall_backs["log_format"] = log_format
        log_format = "json"

    if log_dest.lower() != "stderr":
        try:
            with open(log_dest, "a", encoding="utf-8"):
                pass
        except OSError:
            fall_backs["log_dest"] = log_dest
            log_dest = "stderr"

    return log_format.lower(), log_dest


def generate_run_id(component_name: str) -> str:
    """Return `<component>--<UTC timestamp>--<pid>`."""

    return (
        component_name
        + "--"
        + dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        + "--"
        + str(os.getpid())
    )


FALLBACK_EVENTS: dict[str, tuple[str, str]] = {
    "level": ("fallback_log_level", "Invalid log level; defaulting to INFO"),
    "log_format": (
        "fallback_log_format",
        f"Invalid {FORMAT_ENV_VAR} env var; defaulting to json",
    ),
    "log_dest": (
        "fallback_log_dest",
        f"Invalid {DEST_ENV_VAR} env var; defaulting to stderr",
    ),
}


def handle_fallbacks(logger: InfraLogger, fall_backs: dict[str, str | None]) -> None:
    """
    Emit one WARNING per applied fallback, carrying the rejected raw value.

    Parameters
    ----------
    logger : InfraLogger
        Logger the warnings are emitted on.
    fall_backs : dict[str, str | None]
        Rejected raw values keyed by "level", "log_format", or "log_dest".

    Returns
    -------
    None
    """

    for key, invalid_value in fall_backs.items():
        event, msg = FALLBACK_EVENTS[key]
        logger.warning(event, msg=msg, context={"invalid_value": invalid_value})
