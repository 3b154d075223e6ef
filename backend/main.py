"""
Classroom walkthrough backend.
Deployment-ready: CORS, configurable host/port via env. Run from backend/:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""
import uvicorn

from walkthrough_api.application import create_app
from walkthrough_api.core.config import get_settings

settings = get_settings()

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port)
