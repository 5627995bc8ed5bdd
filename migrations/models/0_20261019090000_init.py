from tortoise import BaseDBAsyncClient


async def upgrade(db: BaseDBAsyncClient) -> str:
    return """
        CREATE TABLE IF NOT EXISTS "shops" (
    "created_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
    "public_id" VARCHAR(27) NOT NULL UNIQUE,
    "shop_domain" VARCHAR(255) NOT NULL UNIQUE /* e.g. example.myshopify.com */,
    "access_token" VARCHAR(255)
);
CREATE INDEX IF NOT EXISTS "idx_shops_public__5d1e9b" ON "shops" ("public_id");
CREATE INDEX IF NOT EXISTS "idx_shops_shop_do_0a6f2c" ON "shops" ("shop_domain");
CREATE TABLE IF NOT EXISTS "report_jobs" (
    "created_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "updated_at" TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
    "id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
    "public_id" VARCHAR(27) NOT NULL UNIQUE,
    "status" VARCHAR(16) NOT NULL DEFAULT 'QUEUED' /* QUEUED: QUEUED\nRUNNING: RUNNING\nCOMPLETE: COMPLETE\nFAILED: FAILED */,
    "params_json" TEXT NOT NULL /* Serialized ReportJobParams */,
    "csv_data" BLOB,
    "xlsx_data" BLOB,
    "pdf_data" BLOB,
    "error_message" TEXT,
    "shop_id" INT NOT NULL REFERENCES "shops" ("id") ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS "idx_report_jobs_public__e41c07" ON "report_jobs" ("public_id");
CREATE TABLE IF NOT EXISTS "aerich" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
    "version" VARCHAR(255) NOT NULL,
    "app" VARCHAR(100) NOT NULL,
    "content" JSON NOT NULL
);"""


async def downgrade(db: BaseDBAsyncClient) -> str:
    return """
        """
