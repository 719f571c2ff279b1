# scripts/init_db.py
import asyncio

from leaseiq.db import engine, init_models


async def main() -> None:
    await init_models()
    await engine.dispose()
    print("OK: created all tables (idempotent).")


if __name__ == "__main__":
    asyncio.run(main())
