import asyncio
import os
import sys

# Aggiungi backend/ alla PYTHONPATH per importare devpilot.* senza installazione
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from devpilot.core.database import close_db, reset_schema


async def reset():
    print("Connessione al database, ricreazione tabelle...")
    await reset_schema()
    await close_db()
    print("Database resettato con successo!")


if __name__ == "__main__":
    asyncio.run(reset())
