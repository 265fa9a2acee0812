"""Storage adapter interface and local filesystem implementation for uploaded images."""
from abc import ABC, abstractmethod
from pathlib import Path
import time
import uuid

from batchreview.settings import settings


def make_storage_key(original_filename: str) -> str:
    """
    Build a collision-free storage key that keeps the original extension.
    
    Format: "<epoch milliseconds>-<uuid4><ext>", e.g. "1718000000000-3f2a...c1.png"
    """
    extension = Path(original_filename or "").suffix.lower()
    return f"{int(time.time() * 1000)}-{uuid.uuid4()}{extension}"


class StorageAdapter(ABC):
    """Abstract storage adapter interface (S3-style)."""
    
    @abstractmethod
    async def save(self, key: str, data: bytes) -> str:
        """
        Save data to storage and return the stored file reference.
        
        Args:
            key: Storage key (e.g., "1718000000000-3f2a...c1.png")
            data: Binary data to save
            
        Returns:
            Reference recorded as the asset filepath, served under /uploads
        """
        pass


class LocalStorageAdapter(StorageAdapter):
    """Local filesystem storage adapter."""
    
    def __init__(self, base_path: str = None):
        self.base_path = Path(base_path or settings.STORAGE_BASE_PATH)
        self.base_path.mkdir(parents=True, exist_ok=True)
    
    def _get_full_path(self, key: str) -> Path:
        """Get full filesystem path for a key."""
        # Keys are flat file names; drop any directory part to prevent traversal
        name = Path(key).name
        if not name or name in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_path / name
    
    async def save(self, key: str, data: bytes) -> str:
        """Save data to local filesystem."""
        full_path = self._get_full_path(key)
        
        with open(full_path, "wb") as f:
            f.write(data)
        
        # The bare file name is the reference served under /uploads
        return full_path.name


def get_storage_adapter() -> StorageAdapter:
    """Factory function (and FastAPI dependency) for the configured storage adapter."""
    return LocalStorageAdapter()
