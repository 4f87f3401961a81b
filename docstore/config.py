import os
from typing import Optional

from dotenv import load_dotenv

# Service settings for the document store. Values come from the environment
# (or a local .env file).

load_dotenv()

ADMIN_TOKEN: Optional[str] = os.getenv("STORE_ADMIN_TOKEN")
HOST = os.getenv("STORE_HOST", "0.0.0.0")
PORT = int(os.getenv("STORE_PORT", "8085"))
KEEPALIVE_SECONDS = float(os.getenv("STORE_KEEPALIVE", "15"))
