# src/api/facade.py - v1
"""Public API facade: training invocation, job enqueueing and prediction.

Usage:
    from kgembed.api.facade import run_training_invocation
    result = await run_training_invocation(graph_source)

Each call to run_training_invocation() does at most one unit of work and is
safe to call repeatedly from an external scheduler.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from kgembed.api.models import PredictionRequest, PredictionResponse
from kgembed.config.settings import Settings
from kgembed.core.errors import JobError
from kgembed.core.models import CompletenessMetrics, InvocationResult, TrainingJob, Triplet
from kgembed.embedding.predictor import TransEPredictor
from kgembed.jobs.orchestrator import Clock, JobOrchestrator
from kgembed.logging.context import clear_context, set_phase
from kgembed.logging.logger import setup_logging

if TYPE_CHECKING:
    from kgembed.graph.base_graph_source import BaseGraphSource
    from kgembed.jobs.base_job_queue import BaseJobQueue
    from kgembed.storage.base_blob_store import BaseBlobStore

logger = logging.getLogger(__name__)

FAILED_MESSAGE = "Job failed"


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the LOG_* settings to the kgembed logger tree."""
    settings = settings or Settings()
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


async def run_training_invocation(
    graph_source: BaseGraphSource,
    settings: Settings | None = None,
    job_queue: BaseJobQueue | None = None,
    blob_store: BaseBlobStore | None = None,
    clock: Clock | None = None,
) -> InvocationResult:
    """Select one eligible job and advance it by one epoch slice.

    Args:
        graph_source: External graph store (nodes, edges, embedding write-back).
        settings: Global settings. Loaded from .env if None.
        job_queue: Job queue. Built from settings if None.
        blob_store: Checkpoint storage. Built from settings if None.
        clock: Current-time source (UTC). Defaults to the system clock.

    Returns:
        Progress or completion summary; a "no work" summary when nothing is
        eligible; a failure summary (error set) when the job failed.
    """
    settings = settings or Settings()
    if job_queue is None:
        from kgembed.jobs.queue_factory import create_job_queue

        job_queue = create_job_queue(settings)
    if blob_store is None:
        from kgembed.storage.blob_store_factory import create_blob_store

        blob_store = create_blob_store(settings)

    orchestrator = JobOrchestrator(
        settings=settings,
        job_queue=job_queue,
        graph_source=graph_source,
        blob_store=blob_store,
        clock=clock,
    )
    try:
        return await orchestrator.run_once()
    except JobError as exc:
        cause = exc.__cause__ or exc
        return InvocationResult(message=FAILED_MESSAGE, job_id=exc.job_id, error=str(cause))


async def enqueue_training_job(
    scope_id: str,
    job_queue: BaseJobQueue,
    settings: Settings | None = None,
) -> TrainingJob:
    """Create a PENDING job covering settings.total_epoch_budget epochs."""
    settings = settings or Settings()
    return await job_queue.enqueue(scope_id, settings.total_epoch_budget)


async def load_predictor(graph_source: BaseGraphSource, scope_id: str) -> TransEPredictor:
    """Build a predictor from the persisted vectors of a scope."""
    entity_rows = await graph_source.load_entity_embeddings(scope_id)
    relation_rows = await graph_source.load_relation_embeddings(scope_id)
    return TransEPredictor.from_rows(entity_rows, relation_rows)


async def run_prediction(
    request: PredictionRequest,
    graph_source: BaseGraphSource,
    settings: Settings | None = None,
) -> PredictionResponse:
    """Answer one read-only query.

    Raises:
        ValidationError: If a referenced id has no vector (MissingEmbedding) or
            stored vectors have inconsistent lengths (DimensionMismatch).
    """
    settings = settings or Settings()
    top_k = request.top_k or settings.predictor_top_k
    set_phase("predict")
    try:
        predictor = await load_predictor(graph_source, request.scope_id)
        response = PredictionResponse(scope_id=request.scope_id, operation=request.operation)

        if request.operation == "predict_tail":
            response.results = predictor.predict_tail(request.head, request.relation, top_k)
        elif request.operation == "predict_head":
            response.results = predictor.predict_head(request.relation, request.tail, top_k)
        elif request.operation == "predict_relation":
            response.results = predictor.predict_relation(request.head, request.tail, top_k)
        elif request.operation == "triplet_score":
            response.score = predictor.triplet_score(request.head, request.relation, request.tail)
        elif request.operation == "similar_entities":
            response.results = predictor.find_similar_entities(request.head, top_k)
        else:
            response.results = predictor.find_similar_relations(request.relation, top_k)

        logger.info(
            "Prediction %s on scope %s returned %d results",
            request.operation, request.scope_id, len(response.results),
        )
        return response
    finally:
        clear_context()


async def evaluate_scope(
    scope_id: str,
    test_triplets: Sequence[Triplet],
    graph_source: BaseGraphSource,
    settings: Settings | None = None,
) -> CompletenessMetrics:
    """Ranking metrics of the persisted vectors of a scope over held-out triplets."""
    settings = settings or Settings()
    predictor = await load_predictor(graph_source, scope_id)
    return predictor.evaluate_graph_completeness(
        test_triplets, candidate_limit=settings.evaluation_candidate_limit,
    )
