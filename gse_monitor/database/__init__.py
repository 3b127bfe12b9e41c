from gse_monitor.database.config import AsyncSessionLocal, Base, engine, get_db, init_db

__all__ = ["AsyncSessionLocal", "Base", "engine", "get_db", "init_db"]
