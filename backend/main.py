"""
Application entry point
Runs the FastAPI server with uvicorn
"""
from walkin.api.main_app import create_app
from walkin.core.config import settings

# The datasource is not auto-configured: create_app builds it explicitly
# from DATABASE_URL and connects only when the server starts.
app = create_app(settings)

if __name__ == "__main__":
    import uvicorn

    # This is run via Dockerfile CMD or local development
    # Configuration via environment variables and .env file
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
