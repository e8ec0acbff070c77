# voicechat/db/mongo.py
from pymongo import ASCENDING, DESCENDING, MongoClient

from ..core.config import Settings

_client = None
_db = None
_dbname = ""

def connect_to_mongo(cfg: Settings):
    """
    Conecta a Mongo y crea índices con MONGO_URI / MONGO_DB de Settings.
    Se llama en startup (lifespan) y es SINCRÓNICO.
    """
    global _client, _db, _dbname
    if _client:
        return _db

    _client = MongoClient(cfg.MONGO_URI, uuidRepresentation="standard")
    _dbname = cfg.MONGO_DB
    _db = _client[_dbname]

    # ---- ÍNDICES ----

    # users: email único
    _db.users.create_index("email", unique=True)

    # chats: listado por dueño, más reciente primero
    _db.chats.create_index([("user", ASCENDING), ("updated_at", DESCENDING)])

    return _db


def disconnect_from_mongo():
    """
    Cierra la conexión. Si la DB se llama voicechat_test_*, la borra.
    """
    global _client, _db, _dbname
    if _client:
        if _dbname.startswith("voicechat_test_"):
            _client.drop_database(_dbname)
        _client.close()
    _client = None
    _db = None
    _dbname = ""


def get_db():
    if _db is None:
        raise RuntimeError("MongoDB no inicializado. Llama connect_to_mongo() en startup.")
    return _db
