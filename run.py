import uvicorn

from classmint.config import settings
from classmint.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
