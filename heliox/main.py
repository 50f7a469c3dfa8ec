import logging
import sys

import cherrypy

from heliox.analytics.config import Config, load_config_file
from heliox.web.latency_api import LatencyAnalyticsAPI

logger = logging.getLogger("HelioxServer")

DEFAULT_CONFIG_PATH = "/etc/heliox/config.yaml"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class HelioxServer:

    def __init__(self, config: dict):

        self.config = config
        self.api = LatencyAnalyticsAPI()

        log_level = (config.get("logging") or {}).get("level", "INFO")
        logging.basicConfig(
            level=getattr(logging, log_level),
            format=(config.get("logging") or {}).get("format", DEFAULT_LOG_FORMAT),
        )

    def run(self):
        server = self.config.get("server") or {}
        host = server.get("host", "0.0.0.0")
        port = int(server.get("port", 8080))

        cherrypy.config.update({
            "server.socket_host": host,
            "server.socket_port": port,
            "server.thread_pool": int(server.get("thread_pool", 8)),
            "tools.encode.on": True,
            "tools.encode.encoding": "utf-8",
            "log.screen": False,
        })

        cherrypy.tree.mount(self.api, "/api/latency", {"/": {}})

        logger.info(
            f"Serving latency analytics on {host}:{port} "
            f"(loss threshold {Config.LATENCY.LOSS_THRESHOLD_PERCENT}%)"
        )
        cherrypy.engine.start()
        cherrypy.engine.block()


def main():

    import argparse

    parser = argparse.ArgumentParser(description="Heliox latency analytics server")
    parser.add_argument(
        "--config",
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    config = load_config_file(args.config or DEFAULT_CONFIG_PATH)

    if args.log_level:
        if not config.get("logging"):
            config["logging"] = {}
        config["logging"]["level"] = args.log_level

    server = HelioxServer(config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Heliox stopped")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
