"""Initialize local infrastructure for Prakriti Setu.

This script:
1. Verifies connectivity to PostgreSQL
2. Runs all Alembic migrations
3. Creates the upload directory tree
4. Reports whether Stream Chat credentials are configured

Run this after the database is up to prepare the development environment.
"""

import asyncio
import sys
from pathlib import Path

# Add the backend directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))


def print_header(title: str) -> None:
    """Print a formatted header."""
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print(f"{'=' * 60}\n")


def print_success(message: str) -> None:
    print(f"✅ {message}")


def print_error(message: str) -> None:
    print(f"❌ {message}")


def print_info(message: str) -> None:
    print(f"ℹ️  {message}")


async def check_postgres() -> None:
    """Check PostgreSQL connectivity and database info."""
    print_header("Checking PostgreSQL Connection")

    from sqlalchemy import text

    from app.core.database import async_engine

    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            print_success("PostgreSQL connection successful")

            version = (await conn.execute(text("SELECT version()"))).scalar()
            if version:
                print_info(f"PostgreSQL version: {version.split(',')[0]}")

            db_name = (await conn.execute(text("SELECT current_database()"))).scalar()
            if db_name:
                print_info(f"Database: {db_name}")
    except Exception as e:
        print_error(f"PostgreSQL connection failed: {e}")
        print_info("Ensure PostgreSQL is running and DATABASE_URL is correct")
        raise
    finally:
        await async_engine.dispose()


def run_migrations() -> None:
    """Run Alembic migrations to upgrade database schema."""
    print_header("Running Database Migrations")
    import subprocess

    backend_dir = Path(__file__).parent.parent
    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        cwd=backend_dir,
        capture_output=True,
        text=True,
    )

    if result.returncode != 0:
        print_error("Database migrations failed")
        if result.stderr:
            print(result.stderr)
        raise RuntimeError("Migration failed")

    print_success("Database migrations completed successfully")
    for line in result.stdout.split("\n"):
        if line.strip():
            print(f"   {line}")

    current = subprocess.run(
        ["alembic", "current"],
        cwd=backend_dir,
        capture_output=True,
        text=True,
    )
    if current.returncode == 0 and current.stdout:
        print_info(f"Current revision: {current.stdout.strip()}")


def init_uploads() -> None:
    """Create the directory tree served under /uploads."""
    print_header("Preparing Upload Storage")

    from app.services.uploads import ensure_upload_dirs, get_upload_root

    ensure_upload_dirs()
    print_success(f"Upload directory ready: {get_upload_root()}")


def check_stream() -> None:
    """Report Stream Chat configuration (no network calls)."""
    print_header("Checking Stream Chat Configuration")

    from app.services.stream_chat import get_stream_service

    service = get_stream_service()
    if service.is_configured:
        print_success("Stream Chat credentials configured")
        print_info(f"Base URL: {service.base_url}")
    else:
        print_info("STREAM_API_KEY / STREAM_API_SECRET not set; chat endpoints will return errors")


async def main() -> None:
    """Run all initialization steps."""
    print("\n" + "=" * 60)
    print("  🌱 Prakriti Setu Infrastructure Initialization")
    print("=" * 60)

    try:
        print_info("Phase 1: Validating database connectivity...")
        await check_postgres()

        print_info("Phase 2: Applying database schema...")
        run_migrations()

        print_info("Phase 3: Preparing local services...")
        init_uploads()
        check_stream()

        print_header("✅ Initialization Complete!")
        print("🚀 Next Steps:")
        print("  Start the backend server:")
        print("     uvicorn main:app --reload --port 5000")
        print()

    except Exception as e:
        print(f"\n❌ Initialization failed: {e}")
        print("\n💡 Troubleshooting:")
        print("  • Check .env file has DATABASE_URL and SECRET_KEY")
        print("  • Ensure PostgreSQL accepts connections from this host")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
