import copy
import logging.config
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from config import SERVER_HOST, SERVER_PORT

custom_logging = copy.deepcopy(LOGGING_CONFIG)
log_format = "%(asctime)s | %(levelprefix)s %(name)s | %(message)s"
custom_logging["formatters"]["default"]["fmt"] = log_format
custom_logging["formatters"]["access"]["fmt"] = (
    "%(asctime)s | %(levelprefix)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
)
custom_logging["formatters"]["default"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
custom_logging["formatters"]["access"]["datefmt"] = "%Y-%m-%d %H:%M:%S"
# Route the application loggers through uvicorn's default handler.
for package in ("execution", "exchanges", "services"):
    custom_logging["loggers"][package] = {"handlers": ["default"], "level": "INFO", "propagate": False}

PROJECT_ROOT = Path(__file__).resolve().parent

# Settings writes must not trigger reloads.
reload_excludes = ["data", "data/*", "data/**/*", "*.json", "*.tmp"]

if __name__ == "__main__":
    logging.config.dictConfig(custom_logging)
    uvicorn.run(
        "services.webapp.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
        reload_dirs=[str(PROJECT_ROOT)],
        reload_excludes=reload_excludes,
        log_config=None,
    )
