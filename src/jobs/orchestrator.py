# src/jobs/orchestrator.py - v1
"""Job orchestrator: advance one training job by one epoch slice per call.

Each invocation is stateless and bounded in time. The job row plus the
latest checkpoint blob carry all progress between invocations:

    PENDING --select--> PROCESSING --slice--> checkpoint (still PROCESSING)
                                    \\-slice--> finalize -> COMPLETED
    any failure ------------------------------> FAILED (error re-raised)

Selection takes the oldest PENDING job, else the oldest PROCESSING job not
updated for stale_job_seconds (abandoned by a crashed or timed-out run).
There is no claim lock: two concurrent invocations may reclaim the same
stale job.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable

import numpy as np

from kgembed.config.settings import Settings
from kgembed.core.errors import DimensionMismatch, JobError, PersistenceError
from kgembed.core.models import (
    GraphEdge,
    GraphNode,
    InvocationResult,
    JobStatus,
    TrainingJob,
    TrainingReport,
    Triplet,
)
from kgembed.embedding.contextual import ContextualAugmenter, StructuralContext
from kgembed.embedding.store import EmbeddingStore
from kgembed.embedding.trainer import TransETrainer
from kgembed.graph.base_graph_source import BaseGraphSource
from kgembed.jobs.base_job_queue import BaseJobQueue
from kgembed.jobs.retry import RetryConfig, persist_with_retry
from kgembed.logging.context import clear_context, set_job_context, set_phase
from kgembed.storage.base_blob_store import BaseBlobStore
from kgembed.storage.checkpoints import (
    delete_checkpoints,
    latest_checkpoint_path,
    read_checkpoint,
    write_checkpoint,
)

logger = logging.getLogger(__name__)

NO_WORK_MESSAGE = "No jobs to process"
CHECKPOINT_MESSAGE = "Batch completed, job will continue"
COMPLETED_MESSAGE = "Job completed successfully"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobOrchestrator:
    """Select-and-advance loop body for resumable TransE training."""

    def __init__(
        self,
        settings: Settings,
        job_queue: BaseJobQueue,
        graph_source: BaseGraphSource,
        blob_store: BaseBlobStore,
        clock: Clock | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._queue = job_queue
        self._graph = graph_source
        self._blobs = blob_store
        self._clock = clock or _utc_now
        self._sleep = sleep
        self._augmenter = ContextualAugmenter(
            base_dimensions=settings.transe_dimensions,
            context_dimensions=settings.context_dimensions,
        )
        self._retry = RetryConfig(
            max_retries=settings.persist_max_retries,
            base_delay_s=settings.persist_base_delay_s,
        )

    # --- Selection ---

    async def select_job(self) -> TrainingJob | None:
        """Oldest PENDING job, else the oldest stale PROCESSING job, else None."""
        pending = await self._queue.oldest_with_status(JobStatus.PENDING)
        if pending is not None:
            return pending

        stale_before = self._clock() - timedelta(seconds=self._settings.stale_job_seconds)
        stale = await self._queue.oldest_with_status(
            JobStatus.PROCESSING, updated_before=stale_before
        )
        if stale is not None:
            logger.info(
                "Reclaiming job %s, last updated %s", stale.id, stale.updated_at.isoformat(),
            )
        return stale

    # --- Invocation ---

    async def run_once(self) -> InvocationResult:
        """Advance at most one job by one slice.

        Raises:
            JobError: If the selected job failed (it is marked FAILED first).
        """
        set_phase("select")
        try:
            job = await self.select_job()
            if job is None:
                logger.info(NO_WORK_MESSAGE)
                return InvocationResult(message=NO_WORK_MESSAGE)
            return await self.process_job(job)
        finally:
            clear_context()

    async def process_job(self, job: TrainingJob) -> InvocationResult:
        """Run one slice of a job; checkpoint or finalize it."""
        set_job_context(job.id, job.scope_id)
        logger.info(
            "Processing job %s for scope %s: %d/%d epochs done",
            job.id, job.scope_id, job.processed_epochs, job.total_epoch_budget,
        )

        now = self._clock()
        job = await self._queue.update(
            job.id,
            status=JobStatus.PROCESSING,
            started_at=job.started_at or now,
            updated_at=now,
        )

        try:
            return await self._advance(job)
        except Exception as exc:
            logger.error("Job %s failed: %s", job.id, exc, exc_info=True)
            await self._queue.update(
                job.id, status=JobStatus.FAILED, error=str(exc), updated_at=self._clock(),
            )
            raise JobError(job.id, str(exc)) from exc

    async def _advance(self, job: TrainingJob) -> InvocationResult:
        set_phase("fetch")
        nodes = await self._graph.fetch_nodes(job.scope_id)
        edges = await self._graph.fetch_edges(job.scope_id)
        if not nodes or not edges:
            raise ValueError(f"No nodes or edges found for scope {job.scope_id}")

        triplets = [edge.to_triplet() for edge in edges]
        entities = [node.id for node in nodes]
        relations = list(dict.fromkeys(edge.type for edge in edges))

        store = await self._restore_or_create(job, len(triplets))
        trainer = TransETrainer(store, rng=self._rng_for(job))
        trainer.initialize(entities, relations)
        _verify_coverage(store, triplets)

        set_phase("train")
        report = trainer.train(triplets, entities, relations)
        processed = job.processed_epochs + store.config.epochs

        if processed >= job.total_epoch_budget:
            return await self._finalize(job, store, nodes, edges, report, processed)
        return await self._checkpoint(job, store, nodes, edges, report, processed)

    async def _restore_or_create(self, job: TrainingJob, triplet_count: int) -> EmbeddingStore:
        if job.processed_epochs > 0:
            path = await latest_checkpoint_path(self._blobs, job.id) or job.checkpoint_ref
            if path:
                try:
                    store = await read_checkpoint(self._blobs, path)
                except FileNotFoundError:
                    logger.warning("Checkpoint %s not found, starting fresh", path)
                else:
                    logger.info(
                        "Restored %s: %d entities, %d relations",
                        path, store.entity_count, store.relation_count,
                    )
                    return store
        return EmbeddingStore(config=self._settings.training_config(triplet_count))

    def _rng_for(self, job: TrainingJob) -> np.random.Generator:
        seed = self._settings.training_seed
        if seed is None:
            return np.random.default_rng()
        # One reproducible stream per slice of the job.
        return np.random.default_rng([seed, job.processed_epochs])

    # --- Outcomes ---

    async def _checkpoint(
        self,
        job: TrainingJob,
        store: EmbeddingStore,
        nodes: list[GraphNode],
        edges: list[GraphEdge],
        report: TrainingReport,
        processed: int,
    ) -> InvocationResult:
        set_phase("checkpoint")
        path = await write_checkpoint(self._blobs, job.id, processed, store)
        await self._queue.update(
            job.id,
            processed_epochs=processed,
            checkpoint_ref=path,
            updated_at=self._clock(),
        )
        logger.info(
            "Slice finished: %d/%d epochs, loss %.4f",
            processed, job.total_epoch_budget, report.final_loss,
        )
        return InvocationResult(
            message=CHECKPOINT_MESSAGE,
            job_id=job.id,
            nodes_processed=len(nodes),
            edges_processed=len(edges),
            processed_epochs=processed,
            total_epochs=job.total_epoch_budget,
            final_loss=report.final_loss,
        )

    async def _finalize(
        self,
        job: TrainingJob,
        store: EmbeddingStore,
        nodes: list[GraphNode],
        edges: list[GraphEdge],
        report: TrainingReport,
        processed: int,
    ) -> InvocationResult:
        set_phase("finalize")
        nodes_by_id = {node.id: node for node in nodes}
        first_edge_by_type: dict[str, GraphEdge] = {}
        for edge in edges:
            first_edge_by_type.setdefault(edge.type, edge)

        persisted = 0
        failed = 0

        for node_id, base in store.entities.items():
            node = nodes_by_id.get(node_id)
            if node is None:
                logger.warning("Node %s no longer in scope, not persisted", node_id)
                continue
            context = StructuralContext(
                label=node.label, scope_id=job.scope_id, properties=node.properties,
            )
            if await self._persist(
                self._graph.persist_entity_embedding, job.scope_id, "entity", node_id, base, context,
            ):
                persisted += 1
            else:
                failed += 1

        for relation_type, base in store.relations.items():
            edge = first_edge_by_type.get(relation_type)
            if edge is None:
                logger.warning("No edge of type %s left in scope, not persisted", relation_type)
                continue
            context = StructuralContext(
                label=edge.type, scope_id=job.scope_id, properties=edge.properties,
            )
            if await self._persist(
                self._graph.persist_relation_embedding, job.scope_id, "relation",
                relation_type, base, context,
            ):
                persisted += 1
            else:
                failed += 1

        now = self._clock()
        await self._queue.update(
            job.id,
            status=JobStatus.COMPLETED,
            processed_epochs=processed,
            completed_at=now,
            updated_at=now,
            error=None,
        )

        try:
            await delete_checkpoints(self._blobs, job.id)
        except Exception as exc:  # job is already COMPLETED
            logger.warning("Failed to remove checkpoints of job %s: %s", job.id, exc)

        logger.info(
            "Job %s completed: %d embeddings persisted, %d failed",
            job.id, persisted, failed,
        )
        return InvocationResult(
            message=COMPLETED_MESSAGE,
            job_id=job.id,
            nodes_processed=len(nodes),
            edges_processed=len(edges),
            processed_epochs=processed,
            total_epochs=job.total_epoch_budget,
            final_loss=report.final_loss,
            completed=True,
            embeddings_persisted=persisted,
            embeddings_failed=failed,
        )

    async def _persist(
        self,
        write: Callable[..., Awaitable[object]],
        scope_id: str,
        kind: str,
        key: str,
        base: np.ndarray,
        context: StructuralContext,
    ) -> bool:
        try:
            vector = self._augmenter.augment(base, context)
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot build context for %s %s, skipping: %s", kind, key, exc)
            return False
        expected = self._settings.embedding_total_dimensions
        if len(vector) != expected:
            raise DimensionMismatch(len(vector), expected, f"persisted {kind} {key}")
        try:
            await persist_with_retry(
                write, scope_id, key, vector.tolist(),
                kind=kind, key=key, config=self._retry, sleep=self._sleep,
            )
        except PersistenceError as exc:
            logger.warning("%s, skipping", exc)
            return False
        return True


def _verify_coverage(store: EmbeddingStore, triplets: list[Triplet]) -> None:
    """Every triplet must have head, tail and relation vectors before training."""
    missing = [
        t for t in triplets
        if t.head not in store.entities
        or t.tail not in store.entities
        or t.relation not in store.relations
    ]
    if missing:
        sample = ", ".join(f"{t.head}-[{t.relation}]->{t.tail}" for t in missing[:3])
        raise ValueError(
            f"Cannot start training: {len(missing)} triplets have missing embeddings ({sample})"
        )
