"""Persistence layer: SQLAlchemy models and the DBStorage singleton."""
from models.db_storage import DBStorage

storage = DBStorage()
