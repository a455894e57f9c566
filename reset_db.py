import asyncio
import sys
import os

# Aggiungi backend/ alla PYTHONPATH per importare repairdesk.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from repairdesk.core.database import engine
from repairdesk.models import Base

async def reset():
    print(f"Connessione al database {engine.url.render_as_string(hide_password=True)}...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print(f"Tabelle eliminate. Creazione di {len(Base.metadata.tables)} tabelle...")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database Repair Desk resettato con successo!")

if __name__ == "__main__":
    asyncio.run(reset())
