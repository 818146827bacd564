import uvicorn

from tapago.core.config import settings
from tapago.main import app

if __name__ == "__main__":
    uvicorn.run("tapago.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
