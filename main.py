import logging
import os

import uvicorn

from backend.app import create_app
from tools.config import Settings

# Load environment variables from .env next to this file
dotenv_path = os.path.join(os.path.dirname(__file__), ".env")
settings = Settings.from_env(dotenv_path)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
