"""
# Sample Data Service

One-shot demonstration of the driver's CRUD surface, run once after the health
gate opened. Operations run in a fixed order against the `podcasts` and
`episodes` collections of the sample database:

1. **initialize**: list database names through the admin connection
2. **create**: insert one podcast and two episodes that reference it
3. **structures**: decode episodes into `Episode` models, insert a `Podcast` model
4. **read**: list, iterate, find one, filter and sort
5. **update**: `update_one` by id, `update_many` by title, `replace_one` by author
6. **delete**: `delete_one`, `delete_many` and dropping the podcasts collection

Each operation is bounded by `SAMPLE_OPERATION_TIMEOUT`. Driver errors are
wrapped in `SampleDataError` and propagate to the caller.

## Dry Run

With `dry_run=True` every insert, update, replace, delete and drop is skipped
and logged instead. Reads still run.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import PyMongoError
from pydantic import ValidationError

from mongodb_client.database.manager import ConnectionHandle
from mongodb_client.errors import SampleDataError
from mongodb_client.managers.logging_manager import get_logger
from mongodb_client.models.podcast_models import Episode, Podcast
from mongodb_client.services.metrics import service_metrics

logger = get_logger(prefix="[SAMPLE]")

PODCASTS_COLLECTION = "podcasts"
EPISODES_COLLECTION = "episodes"

SAMPLE_PODCAST_ID = "610414778b0a99f9bc7f248b"


class SampleDataService:
    """
    Runs the sample CRUD operations.

    Args:
        client: Application connection handle.
        admin_client: Admin connection handle.
        database_name: Database holding the sample collections.
        dry_run: Skip mutating operations when `True`.
        operation_timeout: Seconds allowed for each operation.
    """

    def __init__(
        self,
        client: ConnectionHandle,
        admin_client: ConnectionHandle,
        database_name: str = "sampledb",
        dry_run: bool = False,
        operation_timeout: float = 10.0,
    ):
        self.client = client
        self.admin_client = admin_client
        self.database_name = database_name
        self.dry_run = dry_run
        self.operation_timeout = operation_timeout

    @property
    def podcasts(self) -> AsyncIOMotorCollection:
        return self.client.client[self.database_name][PODCASTS_COLLECTION]

    @property
    def episodes(self) -> AsyncIOMotorCollection:
        return self.client.client[self.database_name][EPISODES_COLLECTION]

    async def run_all(self) -> Dict[str, Any]:
        """Run every operation in order; returns their results keyed by operation name."""
        if self.dry_run:
            logger.info("Dry run: mutating operations will be skipped")
        operations: List[tuple] = [
            ("initialize", self.initialize_database),
            ("create", self.create),
            ("structures", self.structures),
            ("read", self.read),
            ("update", self.update),
            ("delete", self.delete),
        ]
        results: Dict[str, Any] = {}
        for name, operation in operations:
            results[name] = await self._run(name, operation)
        return results

    async def _run(self, name: str, operation: Callable[[], Awaitable[Any]]) -> Any:
        start_time = time.time()
        try:
            result = await asyncio.wait_for(operation(), timeout=self.operation_timeout)
        except asyncio.TimeoutError as e:
            service_metrics.record_sample_operation(name, "timeout")
            raise SampleDataError(name, f"timed out after {self.operation_timeout:g}s") from e
        except PyMongoError as e:
            service_metrics.record_sample_operation(name, "failed")
            raise SampleDataError(name, str(e)) from e
        except ValidationError as e:
            service_metrics.record_sample_operation(name, "invalid")
            raise SampleDataError(name, f"unexpected document shape: {e}") from e
        service_metrics.record_sample_operation(name, "success")
        logger.info("Operation '%s' completed in %.3fs", name, time.time() - start_time)
        return result

    def _skip(self, action: str, target: str, payload: Any = None) -> bool:
        if self.dry_run:
            logger.info("[dry-run] Would %s %s: %s", action, target, payload)
        return self.dry_run

    async def initialize_database(self) -> List[str]:
        logger.info("Initializing database...")
        databases = await self.admin_client.client.list_database_names()
        logger.info("Databases: %s", databases)
        return databases

    async def create(self) -> Dict[str, Any]:
        podcast = {
            "title": "The Polyglot Developer Podcast",
            "author": "Nic Raboy",
            "tags": ["development", "programming", "coding"],
        }
        if self._skip("insert", PODCASTS_COLLECTION, podcast):
            return {"podcast_id": None, "episodes_inserted": 0}

        podcast_result = await self.podcasts.insert_one(podcast)
        episodes = [
            {
                "podcast": podcast_result.inserted_id,
                "title": "GraphQL for API Development",
                "description": "Learn about GraphQL from the co-creator of GraphQL, Lee Byron.",
                "duration": 25,
            },
            {
                "podcast": podcast_result.inserted_id,
                "title": "Progressive Web Application Development",
                "description": "Learn about PWA development with Tara Manicsic.",
                "duration": 32,
            },
        ]
        episode_result = await self.episodes.insert_many(episodes)
        logger.info("Inserted %d documents into episode collection!", len(episode_result.inserted_ids))
        return {"podcast_id": podcast_result.inserted_id, "episodes_inserted": len(episode_result.inserted_ids)}

    async def structures(self) -> Dict[str, Any]:
        logger.info("Reading into typed models")
        documents = await self.episodes.find({"duration": {"$gt": 25}}).to_list(length=None)
        episodes = [Episode.model_validate(document) for document in documents]
        logger.info("Episodes: %s", episodes)

        logger.info("Creating from typed models")
        podcast = Podcast(
            title="The Polyglot Developer",
            author="Nic Raboy",
            tags=["development", "programming", "coding"],
        )
        inserted_id: Optional[ObjectId] = None
        if not self._skip("insert", PODCASTS_COLLECTION, podcast.to_document()):
            result = await self.podcasts.insert_one(podcast.to_document())
            inserted_id = result.inserted_id
            logger.info("Inserted podcast %s", inserted_id)
        return {"episodes": episodes, "podcast_id": inserted_id}

    async def read(self) -> Dict[str, Any]:
        logger.info("Getting all episodes")
        all_episodes = await self.episodes.find({}).to_list(length=None)
        logger.info("Episodes: %s", all_episodes)

        logger.info("Iterating over episodes")
        iterated: List[Mapping[str, Any]] = []
        async for episode in self.episodes.find({}):
            logger.info("Episode: %s", episode)
            iterated.append(episode)

        logger.info("Find one podcast")
        podcast = await self.podcasts.find_one({})
        logger.info("Podcast: %s", podcast)

        logger.info("Filtering (duration of 25)")
        filtered = await self.episodes.find({"duration": 25}).to_list(length=None)
        logger.info("Filtered: %s", filtered)

        logger.info("Sorting, descending by duration > 24")
        sorted_episodes = await self.episodes.find(
            {"duration": {"$gt": 24}}, sort=[("duration", DESCENDING)]
        ).to_list(length=None)
        logger.info("Sorted: %s", sorted_episodes)

        return {
            "all": all_episodes,
            "iterated": iterated,
            "podcast": podcast,
            "filtered": filtered,
            "sorted": sorted_episodes,
        }

    async def update(self) -> Dict[str, int]:
        counts = {"update_one": 0, "update_many": 0, "replace_one": 0}

        logger.info("Updating by ID (%s)", SAMPLE_PODCAST_ID)
        by_id = {"_id": ObjectId(SAMPLE_PODCAST_ID)}
        change = {"$set": {"author": "Nic Raboy"}}
        if not self._skip("update", PODCASTS_COLLECTION, (by_id, change)):
            result = await self.podcasts.update_one(by_id, change)
            counts["update_one"] = result.modified_count
            logger.info("Updated %d documents!", result.modified_count)

        logger.info("Updating by filter")
        by_title = {"title": "The Polyglot Developer Podcast"}
        change = {"$set": {"author": "Nicolas Raboy"}}
        if not self._skip("update", PODCASTS_COLLECTION, (by_title, change)):
            result = await self.podcasts.update_many(by_title, change)
            counts["update_many"] = result.modified_count
            logger.info("Updated %d documents!", result.modified_count)

        logger.info("Replacing document by filter")
        by_author = {"author": "Nic Raboy"}
        replacement = {"title": "The Nic Raboy Show", "author": "Nicolas Raboy"}
        if not self._skip("replace", PODCASTS_COLLECTION, (by_author, replacement)):
            result = await self.podcasts.replace_one(by_author, replacement)
            counts["replace_one"] = result.modified_count
            logger.info("Replaced %d documents!", result.modified_count)

        return counts

    async def delete(self) -> Dict[str, Any]:
        counts: Dict[str, Any] = {"delete_one": 0, "delete_many": 0, "dropped": False}

        logger.info("Deleting document by filter")
        by_title = {"title": "The Polyglot Developer Podcast"}
        if not self._skip("delete one from", PODCASTS_COLLECTION, by_title):
            result = await self.podcasts.delete_one(by_title)
            counts["delete_one"] = result.deleted_count
            logger.info("delete_one removed %d document(s)", result.deleted_count)

        logger.info("Deleting multiple documents by filter")
        by_duration = {"duration": 25}
        if not self._skip("delete many from", EPISODES_COLLECTION, by_duration):
            result = await self.episodes.delete_many(by_duration)
            counts["delete_many"] = result.deleted_count
            logger.info("delete_many removed %d document(s)", result.deleted_count)

        logger.info("Dropping entire collection")
        if not self._skip("drop", PODCASTS_COLLECTION):
            await self.podcasts.drop()
            counts["dropped"] = True

        return counts
