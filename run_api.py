"""
Starts the API server.
"""

import os

import uvicorn
from dotenv import load_dotenv

# Environment variables from .env
load_dotenv()


def run_api_server():
    """Runs the FastAPI app with uvicorn."""
    from eshop.config import settings

    host = os.getenv("HOST", settings.HOST)
    port = int(os.getenv("PORT", settings.PORT))

    print("=" * 50)
    print(f"  {settings.APP_NAME} - API Server")
    print("=" * 50)
    print(f"[INFO] Starting API server on http://{host}:{port}")
    print(f"[INFO] Docs: http://{host}:{port}/docs")

    uvicorn.run(
        "eshop.main:app",
        host=host,
        port=port,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    try:
        run_api_server()
    except KeyboardInterrupt:
        print("\n[INFO] Shutting down...")
