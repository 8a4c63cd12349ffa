"""Storage backends for the three persisted collections.

Every backend reads and replaces whole collections: ingredients, menu items
and orders. Backends are picked once at startup from configuration and passed
to the repositories; nothing here is a module-level singleton.

Backend failures are raised as PersistenceError with the underlying message.
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from food_stand_service.exceptions import PersistenceError
from food_stand_service.repositories.seed_data import seed_ingredients, seed_menu_items

logger = logging.getLogger(__name__)

Record = dict[str, Any]

INGREDIENTS = "ingredients"
MENU_ITEMS = "menu_items"
ORDERS = "orders"
COLLECTIONS = (INGREDIENTS, MENU_ITEMS, ORDERS)


class StorageBackend(Protocol):
    """Read and full-replace access to the persisted collections."""

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def get_ingredients(self) -> list[Record]: ...

    def save_ingredients(self, records: list[Record]) -> None: ...

    def get_menu_items(self) -> list[Record]: ...

    def save_menu_items(self, records: list[Record]) -> None: ...

    def get_orders(self) -> list[Record]: ...

    def save_orders(self, records: list[Record]) -> None: ...


def _initial_data(seed: bool) -> dict[str, list[Record]]:
    if not seed:
        return {name: [] for name in COLLECTIONS}
    return {INGREDIENTS: seed_ingredients(), MENU_ITEMS: seed_menu_items(), ORDERS: []}


class InMemoryStorage:
    """Process-local storage, used for tests and ephemeral deployments."""

    def __init__(self, seed: bool = False) -> None:
        """Initialize storage.

        Args:
            seed: Whether connect() loads the starter inventory and menu
        """
        self.seed = seed
        self._data: dict[str, list[Record]] = {name: [] for name in COLLECTIONS}

    def connect(self) -> None:
        if self.seed and not any(self._data.values()):
            self._data = _initial_data(seed=True)
            logger.info("In-memory storage seeded with starter data")

    def close(self) -> None:
        pass

    def _get(self, collection: str) -> list[Record]:
        return copy.deepcopy(self._data[collection])

    def _save(self, collection: str, records: list[Record]) -> None:
        self._data[collection] = copy.deepcopy(records)

    def get_ingredients(self) -> list[Record]:
        return self._get(INGREDIENTS)

    def save_ingredients(self, records: list[Record]) -> None:
        self._save(INGREDIENTS, records)

    def get_menu_items(self) -> list[Record]:
        return self._get(MENU_ITEMS)

    def save_menu_items(self, records: list[Record]) -> None:
        self._save(MENU_ITEMS, records)

    def get_orders(self) -> list[Record]:
        return self._get(ORDERS)

    def save_orders(self, records: list[Record]) -> None:
        self._save(ORDERS, records)


class JsonFileStorage:
    """Flat-file storage: one JSON document holding all three collections."""

    def __init__(self, file_path: str | Path, seed: bool = True) -> None:
        """Initialize storage.

        Args:
            file_path: Path of the JSON document
            seed: Whether a newly created file starts with the starter data
        """
        self.file_path = Path(file_path)
        self.seed = seed

    def connect(self) -> None:
        """Create the data file if it does not exist yet."""
        if self.file_path.exists():
            logger.info(f"Using JSON data file {self.file_path}")
            return

        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._write_data(_initial_data(self.seed))
        logger.info(f"Created JSON data file {self.file_path} (seeded: {self.seed})")

    def close(self) -> None:
        pass

    def _read_data(self) -> dict[str, list[Record]]:
        try:
            with self.file_path.open(encoding="utf-8") as handle:
                data: dict[str, list[Record]] = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read data file {self.file_path}: {e}")
            raise PersistenceError(f"Failed to read data file: {e}") from e
        return data

    def _write_data(self, data: dict[str, list[Record]]) -> None:
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.file_path.parent, prefix=".inventory-", suffix=".json")
        except OSError as e:
            logger.error(f"Failed to create temporary file next to {self.file_path}: {e}")
            raise PersistenceError(f"Failed to write data file: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.file_path)
        except (OSError, TypeError, ValueError) as e:
            Path(tmp_path).unlink(missing_ok=True)
            logger.error(f"Failed to write data file {self.file_path}: {e}")
            raise PersistenceError(f"Failed to write data file: {e}") from e

    def _get(self, collection: str) -> list[Record]:
        return self._read_data().get(collection, [])

    def _save(self, collection: str, records: list[Record]) -> None:
        data = self._read_data()
        data[collection] = records
        self._write_data(data)

    def get_ingredients(self) -> list[Record]:
        return self._get(INGREDIENTS)

    def save_ingredients(self, records: list[Record]) -> None:
        self._save(INGREDIENTS, records)

    def get_menu_items(self) -> list[Record]:
        return self._get(MENU_ITEMS)

    def save_menu_items(self, records: list[Record]) -> None:
        self._save(MENU_ITEMS, records)

    def get_orders(self) -> list[Record]:
        return self._get(ORDERS)

    def save_orders(self, records: list[Record]) -> None:
        self._save(ORDERS, records)


class DynamoDBStorage:
    """Document-store backend: one DynamoDB table per collection, keyed on ``id``."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_names: dict[str, str]) -> None:
        """Initialize storage.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_names: Table name for each collection
        """
        missing = [name for name in COLLECTIONS if name not in table_names]
        if missing:
            raise ValueError(f"Missing DynamoDB table names for: {', '.join(missing)}")

        self.dynamodb = dynamodb_resource
        self.table_names = dict(table_names)
        self._tables: dict[str, Table] = {}

    def connect(self) -> None:
        self._tables = {name: self.dynamodb.Table(self.table_names[name]) for name in COLLECTIONS}
        logger.info(f"DynamoDB storage connected to tables: {', '.join(self.table_names.values())}")

    def close(self) -> None:
        self._tables = {}

    def _table(self, collection: str) -> Table:
        if collection not in self._tables:
            raise PersistenceError("DynamoDB storage is not connected")
        return self._tables[collection]

    def _scan(self, table: Table, **kwargs: Any) -> list[Record]:
        response = table.scan(**kwargs)
        items = list(response.get("Items", []))
        while "LastEvaluatedKey" in response:
            response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs)
            items.extend(response.get("Items", []))
        return items

    def _get(self, collection: str) -> list[Record]:
        table = self._table(collection)
        try:
            items = self._scan(table)
        except ClientError as e:
            logger.error(f"Failed to scan {collection}: {e}")
            raise PersistenceError(f"Failed to read {collection}: {e}") from e
        return sorted(items, key=lambda item: int(item["id"]))

    def _save(self, collection: str, records: list[Record]) -> None:
        table = self._table(collection)
        try:
            existing = self._scan(
                table, ProjectionExpression="#id", ExpressionAttributeNames={"#id": "id"}
            )
            existing_ids = {int(item["id"]) for item in existing}
            current_ids = {int(record["id"]) for record in records}

            with table.batch_writer() as batch:
                for stale_id in existing_ids - current_ids:
                    batch.delete_item(Key={"id": stale_id})
                for record in records:
                    batch.put_item(Item=record)

        except ClientError as e:
            logger.error(f"Failed to save {collection}: {e}")
            raise PersistenceError(f"Failed to save {collection}: {e}") from e

    def get_ingredients(self) -> list[Record]:
        return self._get(INGREDIENTS)

    def save_ingredients(self, records: list[Record]) -> None:
        self._save(INGREDIENTS, records)

    def get_menu_items(self) -> list[Record]:
        return self._get(MENU_ITEMS)

    def save_menu_items(self, records: list[Record]) -> None:
        self._save(MENU_ITEMS, records)

    def get_orders(self) -> list[Record]:
        return self._get(ORDERS)

    def save_orders(self, records: list[Record]) -> None:
        self._save(ORDERS, records)
