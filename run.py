import uvicorn
from usertx.core.config import configure_logging, settings

if __name__ == "__main__":
    configure_logging(settings)
    uvicorn.run(
        "usertx.main:app",
        host="localhost",
        port=settings.SERVER_PORT,
        reload=True,
        log_level="info",
    )
