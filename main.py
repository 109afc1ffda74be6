"""repotrace — entry point.  Wires config, logging, the tracer and the server."""

import logging
import sys

from repotrace.config import load_config
from repotrace.log import configure_logging
from repotrace.server import serve
from repotrace.tracing import TracingSetupError, init_tracer

log = logging.getLogger("repotrace.main")


def main() -> None:
    cfg = load_config()
    configure_logging(cfg.server.log_level)

    try:
        telemetry = init_tracer(cfg.tracing)
    except TracingSetupError as e:
        log.critical("init tracer: %s", e)
        sys.exit(1)

    try:
        serve(cfg, telemetry)
    except (OSError, ValueError) as e:
        log.critical("serve: %s", e)
        sys.exit(1)
    finally:
        telemetry.shutdown()


if __name__ == "__main__":
    main()
