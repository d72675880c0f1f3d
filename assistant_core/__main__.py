import uvicorn

from assistant_core.api.http_app import create_app
from assistant_core.config.settings import settings


def main() -> None:
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
