"""启动 HTTP 服务：python -m debait_core"""

import uvicorn

from debait_core.api.http import create_app
from debait_core.config.settings import settings
from debait_core.infrastructure.logging.logger import log_file_path, logger


def main() -> None:
    app = create_app()
    logger.info("Server started", extra={"extra": {"host": settings.host, "port": settings.port}})
    print(f"debAIt running on http://{settings.host}:{settings.port}")
    print(f"Logs: {log_file_path()}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
