"""Application settings and validation."""

import os
from pathlib import Path

BASE = Path(__file__).resolve().parent.parent


class Settings:
    ENV: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    DATABASE_URL: str
    LOG_LEVEL: str
    PER_PAGE: int
    MAX_PER_PAGE: int
    LIBRARY_FINE_PER_DAY: float
    LIBRARY_BORROW_DAYS: int
    MAX_UPLOAD_BYTES: int
    LOGIN_RATE_LIMIT_PER_MIN: int

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.ALLOW_INSECURE_JWT = os.getenv("ALLOW_INSECURE_JWT", "false").lower() == "true"
        self.ALLOW_DEV_CORS = os.getenv("ALLOW_DEV_CORS", "true").lower() == "true"
        self.DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE / 'campusdesk.db'}")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.PER_PAGE = int(os.getenv("PER_PAGE", "15"))
        self.MAX_PER_PAGE = int(os.getenv("MAX_PER_PAGE", "100"))
        # used only when no active library setting row exists
        self.LIBRARY_FINE_PER_DAY = float(os.getenv("LIBRARY_FINE_PER_DAY", "10"))
        self.LIBRARY_BORROW_DAYS = int(os.getenv("LIBRARY_BORROW_DAYS", "14"))
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(2 * 1024 * 1024)))  # 2 MB default
        self.LOGIN_RATE_LIMIT_PER_MIN = int(os.getenv("LOGIN_RATE_LIMIT_PER_MIN", "10"))
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.PER_PAGE < 1 or self.MAX_PER_PAGE < self.PER_PAGE:
            raise RuntimeError("PER_PAGE must be >= 1 and <= MAX_PER_PAGE")
        if self.LIBRARY_FINE_PER_DAY < 0:
            raise RuntimeError("LIBRARY_FINE_PER_DAY must be >= 0")


settings = Settings()
