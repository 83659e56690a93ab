import logging

import uvicorn

from hugill.config import settings
from hugill.fastapi_app import app


def main() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    uvicorn.run(app, host="127.0.0.1", port=settings.HTTP_PORT)


if __name__ == "__main__":
    main()
