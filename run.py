import os

import uvicorn


def run_migrations():
    """Run Alembic migrations."""
    try:
        from alembic.config import Config
        from alembic import command

        alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
        print("[STARTUP] Running database migrations...")
        command.upgrade(alembic_cfg, "head")
        print("[STARTUP] Migrations complete!")
        return True
    except Exception as e:
        print(f"[WARN] Migration failed: {e}")
        return False


def init_database():
    """Create tables and missing columns directly (fallback)."""
    from app.database import init_db
    print("[STARTUP] Initializing database tables...")
    if init_db():
        print("[STARTUP] Database initialization complete!")
    else:
        print("[WARN] Database initialization failed - continuing in degraded mode")


def prepare_database():
    if os.getenv("RUN_MIGRATIONS") == "true":
        if not run_migrations():
            print("[WARN] Falling back to direct table creation...")
            init_database()
    else:
        init_database()


if __name__ == "__main__":
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))

    # Disable reload in production
    reload = os.getenv("ENV") == "development"

    prepare_database()
    print(f"[STARTUP] Server binding to host={host} port={port}")

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        workers=1,
    )
