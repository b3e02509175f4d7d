"""qevolve: Error Taxonomy and Logging
-----------------------------------

Exception hierarchy, warning class and the shared logger for qevolve.

Error Hierarchy
---------------
- QEVError: Base exception for all qevolve errors
- QEVPreconditionError: Caller programming errors, never recovered
    - QEVConfigError: Option and time-span errors (500-599)
    - QEVStateError: Recast and buffer errors (700-799)
- QEVIntegratorError: Stepping engine failures (300-399)
- QEVRegistryError: Algorithm registry errors (400-499)

Messages carry their numeric code as a ``[NNN]`` prefix so that callers can
tell which layer raised without inspecting the type.

Logging
-------
The shared logger is named "qevolve" and can be configured for console and
file output with optional JSON formatting. Python warnings are captured into
logging with adjustable levels.
"""

import logging
import os

__all__ = [
    "QEVError",
    "QEVPreconditionError",
    "QEVConfigError",
    "QEVStateError",
    "QEVIntegratorError",
    "QEVRegistryError",
    "QEVWarning",
    "get_logger",
    "configure_logging",
]


# =============================================================================
# Exception Hierarchy
# =============================================================================


class QEVError(Exception):
    """Base exception for all qevolve errors.

    Examples
    --------
    >>> try:
    ...     pass  # some integration
    ... except QEVError as e:
    ...     print(f"integration failed: {e}")

    """

    pass


class QEVPreconditionError(QEVError):
    """A caller broke a contract of the integration core.

    Raised before any stepping happens; a run that raises this produced no
    samples.
    """

    pass


class QEVConfigError(QEVPreconditionError):
    """Configuration-related errors (Code 500-599).

    Examples: malformed time span, invalid tolerance, scheme that does not
    support the requested noise structure, unreadable option file.
    """

    pass


class QEVStateError(QEVPreconditionError):
    """State-related errors (Code 700-799).

    Examples: flat/structured length mismatch, aliased ``state`` and
    ``dstate`` buffers, lossy dtype conversion during recast.
    """

    pass


class QEVIntegratorError(QEVError):
    """Integrator-related errors (Code 300-399).

    Raised when the stepping engine cannot continue: the scipy solver reports
    failure or a stochastic trajectory leaves the finite range.
    """

    pass


class QEVRegistryError(QEVError):
    """Registry-related errors (Code 400-499).

    Examples: duplicate registration, unknown algorithm name.
    """

    pass


class QEVWarning(Warning):
    """Base warning for all qevolve warnings (Code 900-999).

    Examples: a fixed stochastic step coarser than the sampling grid.
    """

    pass


# =============================================================================
# Logger Configuration
# =============================================================================

_logger: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Get the shared qevolve logger instance.

    Returns
    -------
    logging.Logger
        The singleton logger named "qevolve" configured at INFO level by
        default with a console handler. Handlers are created lazily on first use.

    Examples
    --------
    >>> logger = get_logger()
    >>> logger.name
    'qevolve'

    """
    global _logger
    if _logger is None:
        _logger = logging.getLogger("qevolve")
        _logger.setLevel(logging.INFO)
        if not _logger.handlers:
            h = logging.StreamHandler()
            fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
            h.setFormatter(fmt)
            _logger.addHandler(h)
    return _logger


def configure_logging(
    verbose: bool = False,
    log_file: str | None = None,
    as_json: bool = False,
    suppress_warnings: bool = False,
) -> None:
    """Configure the shared logger outputs and warning capture.

    Parameters
    ----------
    verbose : bool, default False
        When True, set logger level to DEBUG; otherwise INFO. Per-run set-up
        and steady-state terminations are logged at DEBUG.
    log_file : str or None, default None
        Optional file path to append logs.
    as_json : bool, default False
        Emit logs in a compact JSON line format when True; otherwise plain text.
    suppress_warnings : bool, default False
        Route Python warnings into logging and raise their level to ERROR when
        True; otherwise capture warnings at WARNING level.

    Raises
    ------
    QEVConfigError
        - [530] The log file cannot be opened.

    """
    logger = get_logger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    ch = logging.StreamHandler()
    if as_json:
        fmt = logging.Formatter(
            '{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","msg":"%(message)s"}'
        )
    else:
        fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:
        try:
            fh = logging.FileHandler(os.fspath(log_file), encoding="utf-8")
        except OSError as e:
            raise QEVConfigError(f"[530] Cannot open log file {log_file!r}: {e}") from e
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    logging.captureWarnings(True)
    logging.getLogger("py.warnings").setLevel(
        logging.ERROR if suppress_warnings else logging.WARNING
    )
