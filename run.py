import uvicorn

from interview_analysis.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()

    # Run the application
    uvicorn.run(
        "interview_analysis.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
