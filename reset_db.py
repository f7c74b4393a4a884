import argparse
import asyncio
import sys
import os

# Aggiungi backend/ alla PYTHONPATH per importare app.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from app.core.database import AsyncSessionLocal, engine
from app.core.security import create_access_token
from app.models import Base
from app.models.user import User, UserRole


async def reset(master_username=None, master_name=None):
    print("Connessione al database, eliminazione tabelle...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print("Tabelle eliminate. Creazione nuove tabelle...")
        await conn.run_sync(Base.metadata.create_all)
    print("Database resettato: nessun intervento, contatori di numerazione azzerati.")

    if master_username:
        async with AsyncSessionLocal() as session:
            master = User(
                username=master_username,
                full_name=master_name or master_username,
                role=UserRole.MASTER.value,
            )
            session.add(master)
            await session.commit()
            await session.refresh(master)
        print(f"Creato Master '{master.username}' ({master.id})")
        print(f"Token di accesso: {create_access_token(str(master.id), UserRole.MASTER.value)}")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ricrea lo schema del Gestionale Interventi")
    parser.add_argument("--master-username", help="Crea un utente Master dopo il reset")
    parser.add_argument("--master-name", help="Nome completo del Master (default: username)")
    args = parser.parse_args()
    asyncio.run(reset(args.master_username, args.master_name))
