import os

# Settings are read at import time in both processes
os.environ.setdefault("TG_BOT_TOKEN", "123456:TEST-token")
os.environ.setdefault("ADMIN_IDS", "1001")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TZ_OFFSET_MINUTES", "0")
os.environ.setdefault("REMINDER_HOURS", "2")
