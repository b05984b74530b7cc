import logging

import uvicorn

import config
from utils.config_validator import validate_or_exit
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

# Validate critical configuration before the app is built
validate_or_exit(config)

from web.app import create_app

app = create_app()

if __name__ == '__main__':
    logging.info(f"[run.py] Starting web server on {config.WEB_HOST}:{config.WEB_PORT}")
    uvicorn.run(app, host=config.WEB_HOST, port=config.WEB_PORT, log_config=None)
