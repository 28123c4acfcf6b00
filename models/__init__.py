"""
Models package: instantiates the shared DBStorage used by the API.
"""
from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()
