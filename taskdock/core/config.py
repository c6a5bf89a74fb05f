from os import getenv

class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "sqlite:///./taskdock.db")
    LOG_LEVEL = getenv("LOG_LEVEL", "INFO")

    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "15"))  # access token: 15 minutes
    JWT_REFRESH_EXPIRE_MIN = int(getenv("JWT_REFRESH_EXPIRE_MIN", "43200"))  # refresh token: 30 days

    # "local" or "s3", read once at startup
    STORAGE_BACKEND = getenv("STORAGE_BACKEND", "local")
    UPLOAD_DIR = getenv("UPLOAD_DIR", "./uploads")
    PUBLIC_BASE_URL = getenv("PUBLIC_BASE_URL", "http://localhost:8000")
    STORAGE_SIGNING_SECRET = getenv("STORAGE_SIGNING_SECRET", JWT_SECRET)
    S3_BUCKET = getenv("S3_BUCKET")
    S3_REGION = getenv("S3_REGION")
    S3_ENDPOINT_URL = getenv("S3_ENDPOINT_URL")
    SIGNED_URL_TTL_SECONDS = int(getenv("SIGNED_URL_TTL_SECONDS", "900"))  # 15 minutes

    MAX_UPLOAD_BYTES = 10 * 1024 * 1024
    ALLOWED_MIME_TYPES = frozenset([
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "text/csv",
    ])

settings = Settings()
