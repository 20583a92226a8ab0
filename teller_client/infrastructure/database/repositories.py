"""Data access layer for local storage entries"""

from typing import Optional
from sqlalchemy.orm import Session
from teller_client.infrastructure.database.models import StoredItem


class LocalStorageRepository:
    """Repository mirroring the getItem/setItem/removeItem storage API"""

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, key: str) -> Optional[str]:
        """Fetch the raw value stored under key"""
        item = self.db.query(StoredItem).filter(StoredItem.key == key).first()
        return item.value if item else None

    def set_item(self, key: str, value: str) -> None:
        """Insert or replace the value stored under key"""
        item = self.db.query(StoredItem).filter(StoredItem.key == key).first()
        if item:
            item.value = value
        else:
            self.db.add(StoredItem(key=key, value=value))
        self.db.flush()

    def remove_item(self, key: str) -> None:
        """Delete key; missing keys are ignored"""
        self.db.query(StoredItem).filter(StoredItem.key == key).delete()
