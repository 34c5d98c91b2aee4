"""
Entrypoint: load config and .env, init logging, serve the proxy app
"""

import structlog
import uvicorn
from dotenv import load_dotenv

from service.app import create_app
from service.config import Config
from service.logs import configure_logging


def main():
    """Initialize dependencies and start the HTTP server"""
    # Load environment variables from .env file
    load_dotenv()

    config = Config()
    configure_logging(
        level=config.get('logging', 'level', default='INFO'),
        json=config.get('logging', 'json', default=True),
    )
    logger = structlog.get_logger(__name__)

    host = config.get('server', 'host', default='0.0.0.0')
    port = int(config.get('server', 'port', default=3001))
    logger.info("starting_server", host=host, port=port)

    app = create_app(config)
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
