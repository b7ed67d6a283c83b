import os

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_SERVICE_KEY")

# JWT
JWT_SECRET = os.getenv("JWT_SECRET", "your-secret-key-change-this")
JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081"
    ).split(",")
    if origin.strip()
]

# Scheduling rules
SICK_CALL_MIN_NOTICE_HOURS = int(os.getenv("SICK_CALL_MIN_NOTICE_HOURS", "3"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
