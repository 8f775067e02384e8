import logging
import uvicorn
from ytrelay.config.settings import config
from ytrelay.main import build_app

logger = logging.getLogger("ytrelay")

def main():
    app = build_app(config)
    if config.server.simple_mode:
        logger.info(f"Redirecting all traffic to: {config.server.redirect_target}")
    logger.info(f"Server is running at http://localhost:{config.port}")
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.logging.level.lower())

if __name__ == "__main__":
    main()
