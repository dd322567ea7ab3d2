import os

from dotenv import load_dotenv
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
PWD_SALT = os.getenv("PWD_SALT", "salt")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

CATALOG_PAGE_SIZE = int(os.getenv("CATALOG_PAGE_SIZE", 12))
CURRENCY = os.getenv("CURRENCY", "SEK")
PAYMENT_FAILURE_RATE = float(os.getenv("PAYMENT_FAILURE_RATE", 0))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
