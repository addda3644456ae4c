"""
Local persistence for the Farm Passport client
"""

from .connection import DatabaseConnection, DatabaseError, get_database, close_database
from .models import Principal, Session, SessionDomain, SessionRecord
from .session_store import SessionStore, SQLiteSessionStore

__all__ = [
    'DatabaseConnection',
    'DatabaseError',
    'get_database',
    'close_database',
    'Principal',
    'Session',
    'SessionDomain',
    'SessionRecord',
    'SessionStore',
    'SQLiteSessionStore',
]
