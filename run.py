"""
Application Entry Point
"""
import uvicorn

from bidhouse.core.config import get_settings

settings = get_settings()

if __name__ == "__main__":
    uvicorn.run(
        "bidhouse.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )
