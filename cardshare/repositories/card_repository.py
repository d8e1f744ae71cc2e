import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, TypeVar

import aiofiles
import aiofiles.os
import portalocker

from ..core.exceptions.base import StorageUnavailableError, ValidationError
from ..core.exceptions.domain import CardNotFoundError, CorruptStoreError, DuplicateIdError
from ..domain.card.models import Card, now_iso

logger = logging.getLogger(__name__)
T = TypeVar('T')


class CardRepositoryInterface(ABC):
    """Abstract base class defining the interface for card repositories."""

    @abstractmethod
    async def load(self) -> List[Card]:
        """Return every stored card in insertion order."""
        pass

    @abstractmethod
    async def find(self, card_id: str) -> Card:
        """
        Return the card with the given id.

        Raises:
            CardNotFoundError: If no card has this id.
        """
        pass

    @abstractmethod
    async def add(self, card: Card) -> Card:
        """Append a new card."""
        pass

    @abstractmethod
    async def edit(self, card_id: str, card: Card) -> Card:
        """Replace the card with the given id in place."""
        pass

    @abstractmethod
    async def delete(self, card_id: str) -> bool:
        """Remove the card with the given id if present."""
        pass

    async def list_cards(self) -> List[Card]:
        return await self.load()

    async def check_writable(self) -> None:
        """Fail the way the next mutation would if the store cannot take it."""
        await self.load()


class JSONCardRepository(CardRepositoryInterface):
    """
    Card repository backed by a single JSON document.

    Mutations are serialized twice over: an asyncio lock inside the process and
    an advisory file lock on a sidecar ``.lock`` file across processes. Reads
    take neither lock and may observe the previous document.
    """

    def __init__(self, document_path: str, lock_timeout: float = 5.0):
        """
        Initialize the JSON card repository.

        Args:
            document_path (str): Path of the JSON document.
            lock_timeout (float): Seconds to wait for the file lock.
        """
        self.document_path = Path(document_path)
        self.lock_path = self.document_path.with_name(self.document_path.name + ".lock")
        self.tmp_path = self.document_path.with_name(self.document_path.name + ".tmp")
        self.lock_timeout = lock_timeout
        self.logger = logging.getLogger(__name__)
        self._lock = asyncio.Lock()

    async def load(self) -> List[Card]:
        """
        Load every card from the document.

        Returns:
            List[Card]: Stored cards; empty only when the document does not exist.

        Raises:
            CorruptStoreError: If the document exists but cannot be parsed.
            StorageUnavailableError: If the document cannot be read.
        """
        return await self._read()

    async def find(self, card_id: str) -> Card:
        for card in await self._read():
            if card.id == card_id:
                return card
        raise CardNotFoundError(card_id)

    async def check_writable(self) -> None:
        """
        Check that the document can be parsed and replaced, without locking.

        Raises:
            CorruptStoreError: If the document exists but cannot be parsed.
            StorageUnavailableError: If the document cannot be read or written.
        """
        self._check_writable()
        await self._read()

    async def add(self, card: Card) -> Card:
        def operation(cards: List[Card]) -> Card:
            if any(existing.id == card.id for existing in cards):
                raise DuplicateIdError(card.id)
            cards.append(card)
            return card

        saved = await self._mutate(operation)
        self.logger.info(f"Successfully saved card: {saved.id}")
        return saved

    async def edit(self, card_id: str, card: Card) -> Card:
        def operation(cards: List[Card]) -> Card:
            for index, existing in enumerate(cards):
                if existing.id == card_id:
                    cards[index] = replace(card, id=card_id, upload_time=now_iso())
                    return cards[index]
            raise CardNotFoundError(card_id)

        saved = await self._mutate(operation)
        self.logger.info(f"Successfully updated card: {card_id}")
        return saved

    async def delete(self, card_id: str) -> bool:
        def operation(cards: List[Card]) -> bool:
            for index, existing in enumerate(cards):
                if existing.id == card_id:
                    del cards[index]
                    return True
            return False

        removed = await self._mutate(operation)
        if removed:
            self.logger.info(f"Successfully deleted card: {card_id}")
        else:
            self.logger.info(f"Delete requested for unknown card: {card_id}")
        return removed

    async def _mutate(self, operation: Callable[[List[Card]], T]) -> T:
        """
        Run one read-modify-write transaction.

        The operation edits the card list in place; if it raises, nothing is written.
        """
        async with self._lock:
            self._check_writable()
            file_lock = portalocker.Lock(str(self.lock_path), mode="a", timeout=self.lock_timeout)
            try:
                await asyncio.to_thread(file_lock.acquire)
            except portalocker.LockException as e:
                self.logger.error(f"Timed out waiting for lock on {self.document_path}: {e}")
                raise StorageUnavailableError(str(self.document_path), "document is locked by another writer")
            except OSError as e:
                self.logger.error(f"Failed to open lock file {self.lock_path}: {e}")
                raise StorageUnavailableError(str(self.lock_path), str(e))

            try:
                cards = await self._read()
                result = operation(cards)
                await self._write(cards)
                return result
            finally:
                file_lock.release()

    def _check_writable(self) -> None:
        directory = self.document_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Failed to create data directory {directory}: {e}")
            raise StorageUnavailableError(str(directory), "directory could not be created")

        if self.document_path.exists() and not os.access(self.document_path, os.W_OK):
            self.logger.error(f"Card document is not writable: {self.document_path}")
            raise StorageUnavailableError(str(self.document_path), "document is not writable")

    async def _read(self) -> List[Card]:
        try:
            async with aiofiles.open(self.document_path, mode="r", encoding="utf-8") as file:
                content = await file.read()
        except FileNotFoundError:
            return []
        except UnicodeDecodeError as e:
            self.logger.error(f"Failed to decode {self.document_path}: {e}")
            raise CorruptStoreError(str(self.document_path), "document is not valid UTF-8")
        except OSError as e:
            self.logger.error(f"Failed to read {self.document_path}: {e}")
            raise StorageUnavailableError(str(self.document_path), str(e))

        return self._parse(content)

    def _parse(self, content: str) -> List[Card]:
        try:
            records = json.loads(content)
        except json.JSONDecodeError as e:
            self.logger.error(f"Failed to parse {self.document_path}: {e}")
            raise CorruptStoreError(str(self.document_path), str(e))

        if not isinstance(records, list):
            self.logger.error(f"Card document {self.document_path} is not a JSON array")
            raise CorruptStoreError(str(self.document_path), "document is not a JSON array")

        cards = []
        for position, record in enumerate(records):
            try:
                cards.append(Card.from_dict(record))
            except ValidationError as e:
                self.logger.error(f"Invalid card record at position {position}: {e.message}")
                raise CorruptStoreError(str(self.document_path), f"record {position}: {e.message}")
        return cards

    async def _write(self, cards: List[Card]) -> None:
        payload = json.dumps([card.to_dict() for card in cards], indent=4, ensure_ascii=False)
        try:
            async with aiofiles.open(self.tmp_path, mode="w", encoding="utf-8") as file:
                await file.write(payload)
                await file.flush()
                os.fsync(file.fileno())
            await aiofiles.os.replace(self.tmp_path, self.document_path)
        except OSError as e:
            self.logger.error(f"Failed to write to {self.document_path}: {e}")
            try:
                await aiofiles.os.remove(self.tmp_path)
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                self.logger.warning(f"Failed to remove {self.tmp_path}: {cleanup_error}")
            raise StorageUnavailableError(str(self.document_path), f"write failed: {e}")
