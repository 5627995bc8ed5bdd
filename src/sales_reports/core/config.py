import os

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./sales_reports.sqlite3")

# Queue broker and result backend for the report worker
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
REPORT_QUEUE_NAME: str = os.getenv("REPORT_QUEUE_NAME", "report-generation")
REPORT_WORKER_CONCURRENCY: int = int(os.getenv("REPORT_WORKER_CONCURRENCY", "2"))
# Unacked messages are redelivered after this many seconds
REPORT_VISIBILITY_TIMEOUT: int = int(os.getenv("REPORT_VISIBILITY_TIMEOUT", "3600"))
# A RUNNING job untouched this long has lost its worker
REPORT_JOB_STALE_SECONDS: int = int(os.getenv("REPORT_JOB_STALE_SECONDS", "3000"))

# Shopify app credentials. The secret signs App Bridge session tokens.
SHOPIFY_API_KEY: str = os.getenv("SHOPIFY_API_KEY", "")
SHOPIFY_API_SECRET: str = os.getenv(
    "SHOPIFY_API_SECRET", "your-shopify-api-secret-!ChangeMe!"
)
SHOPIFY_API_VERSION: str = os.getenv("SHOPIFY_API_VERSION", "2024-10")
SHOPIFY_HTTP_TIMEOUT: float = float(os.getenv("SHOPIFY_HTTP_TIMEOUT", "30"))
SESSION_TOKEN_ALGORITHM: str = "HS256"

ORDERS_PAGE_SIZE: int = int(os.getenv("ORDERS_PAGE_SIZE", "50"))
REPORT_TIMEZONE: str = os.getenv("REPORT_TIMEZONE", "UTC")
DEFAULT_FINANCIAL_STATUS: list[str] = ["paid", "partially_paid"]
JOB_LIST_LIMIT: int = 50

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
# Comma separated logger prefixes, e.g. "sales_reports.features.report_jobs"
LOG_NAMESPACES: list[str] = [
    ns.strip() for ns in os.getenv("LOG_NAMESPACES", "").split(",") if ns.strip()
]

MODEL_MODULES: list[str] = [
    "sales_reports.features.shops.models",
    "sales_reports.features.report_jobs.models",
]

TORTOISE_ORM_CONFIG = {
    "connections": {"default": DATABASE_URL},
    "apps": {
        "models": {
            "models": [*MODEL_MODULES, "aerich.models"],  # aerich for migrations
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}
