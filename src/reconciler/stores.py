"""
Persistence collaborators for the ledger and the inventory snapshot.

The store pattern lets us swap implementations (in-memory for testing,
JSON files or a remote database for production) without changing the
pipeline. Stores are async: they are the only places an import waits.
"""

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from .inventory import CatalogProduct


class PersistenceError(RuntimeError):
    """A store write failed; the batch that produced it is not durable."""


class LedgerStore(ABC):
    """Durable set of applied ledger keys."""

    @abstractmethod
    async def load_keys(self) -> set[str]:
        """Read every stored key."""

    @abstractmethod
    async def save_keys(self, keys: Iterable[str]) -> None:
        """Replace the stored key set."""


class InventoryStore(ABC):
    """Durable inventory catalog."""

    @abstractmethod
    async def load_snapshot(self) -> list[CatalogProduct]:
        """Read the current catalog."""

    @abstractmethod
    async def save_snapshot(self, snapshot: list[CatalogProduct]) -> None:
        """Replace the stored catalog."""


class InMemoryLedgerStore(LedgerStore):
    """Ledger store backed by a set - for tests and one-off runs."""

    def __init__(self, keys: Iterable[str] = ()):
        self.keys = set(keys)
        self.save_count = 0

    async def load_keys(self) -> set[str]:
        return set(self.keys)

    async def save_keys(self, keys: Iterable[str]) -> None:
        self.keys = set(keys)
        self.save_count += 1


class InMemoryInventoryStore(InventoryStore):
    """Inventory store backed by a list - for tests and one-off runs."""

    def __init__(self, products: Iterable[CatalogProduct] = ()):
        self.products = list(products)
        self.save_count = 0

    async def load_snapshot(self) -> list[CatalogProduct]:
        return list(self.products)

    async def save_snapshot(self, snapshot: list[CatalogProduct]) -> None:
        self.products = list(snapshot)
        self.save_count += 1


def _write_json_atomic(path: Path, data) -> None:
    """Write JSON next to the target, then rename over it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def _read_json(path: Path, default):
    if not path.exists():
        return default
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class JsonLedgerStore(LedgerStore):
    """
    Ledger keys as a JSON array of encoded strings.

    A missing file is an empty ledger.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def load_keys(self) -> set[str]:
        data = await asyncio.to_thread(_read_json, self.path, [])
        if not isinstance(data, list):
            raise ValueError(f"Ledger file must hold a JSON array: {self.path}")
        return {str(k) for k in data}

    async def save_keys(self, keys: Iterable[str]) -> None:
        await asyncio.to_thread(_write_json_atomic, self.path, sorted(keys))


class JsonInventoryStore(InventoryStore):
    """
    Inventory catalog as a JSON array of product objects.

    JSON format expected:
        [{"name": "Canvas Tote Fuchsia", "quantity_on_hand": 12, ...}, ...]
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    async def load_snapshot(self) -> list[CatalogProduct]:
        data = await asyncio.to_thread(_read_json, self.path, [])
        if not isinstance(data, list):
            raise ValueError(f"Inventory file must hold a JSON array: {self.path}")
        return [CatalogProduct.from_dict(item) for item in data]

    async def save_snapshot(self, snapshot: list[CatalogProduct]) -> None:
        await asyncio.to_thread(
            _write_json_atomic, self.path, [p.to_dict() for p in snapshot]
        )
