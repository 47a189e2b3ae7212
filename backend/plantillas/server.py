#!/usr/bin/env python3
import uvicorn

from plantillas.config.settings import settings


def main():
    uvicorn.run(
        "plantillas.api.api:app",   # Usar string de importación en lugar del objeto
        host=settings.API_HOST,
        port=settings.API_PORT,
        workers=1,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
