# src/storage/layout.py - v1
"""Checkpoint path conventions.

Every checkpoint of a job lives in the job's folder:

    {job_id}/model_epoch_{processed_epochs}.json
"""

from __future__ import annotations

import re

CHECKPOINT_PREFIX = "model_epoch_"
CHECKPOINT_SUFFIX = ".json"

_CHECKPOINT_NAME = re.compile(
    rf"^{CHECKPOINT_PREFIX}(\d+){re.escape(CHECKPOINT_SUFFIX)}$"
)


def job_folder(job_id: str) -> str:
    """Folder holding every checkpoint of a job."""
    if not job_id or "/" in job_id:
        raise ValueError(f"Invalid job id for checkpoint path: {job_id!r}")
    return job_id


def checkpoint_name(processed_epochs: int) -> str:
    return f"{CHECKPOINT_PREFIX}{processed_epochs}{CHECKPOINT_SUFFIX}"


def checkpoint_path(job_id: str, processed_epochs: int) -> str:
    """Blob path of the checkpoint written after processed_epochs epochs."""
    return f"{job_folder(job_id)}/{checkpoint_name(processed_epochs)}"


def parse_checkpoint_epochs(name: str) -> int | None:
    """Return processed_epochs encoded in a checkpoint file name, else None."""
    match = _CHECKPOINT_NAME.match(name.rsplit("/", 1)[-1])
    return int(match.group(1)) if match else None
