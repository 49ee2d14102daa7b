"""
Main application entry point
"""

import uvicorn
from todoflow.config.settings import settings
from todoflow.utils.logger import logger
from todoflow.web.main import create_app

app = create_app()


def main():
    """Serve the HTTP interface"""
    try:
        settings.validate()
    except ValueError as e:
        logger.warning(f"{e}; only guest mode will work")
    logger.info(f"Starting TodoFlow on {settings.WEB_HOST}:{settings.WEB_PORT}")
    uvicorn.run(app, host=settings.WEB_HOST, port=settings.WEB_PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
