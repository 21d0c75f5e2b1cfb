"""Saves mapped CSVs and test results for a user to an IFileStore."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from waypoint.core.protocols import IFileStore
from waypoint.models.results import BatchRunResult, SavedArtifact

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe(name: str) -> str:
    return _UNSAFE.sub("_", name).strip("_") or "upload"


class ArtifactStore:
    """Writes artifacts under ``users/{uid}/csvBuilder/{name}-{timestamp}/``."""

    def __init__(self, file_store: IFileStore) -> None:
        self._files = file_store

    def base_path(self, user_id: str, name: str, now: datetime | None = None) -> str:
        stamp = int((now or datetime.now(timezone.utc)).timestamp() * 1000)
        return f"users/{_safe(user_id)}/csvBuilder/{_safe(name)}-{stamp}"

    def save_run(
        self,
        user_id: str,
        name: str,
        mapped_csv: str,
        batch: BatchRunResult | None = None,
        now: datetime | None = None,
    ) -> list[SavedArtifact]:
        """Store the mapped CSV and, when given, the batch results as JSON."""
        base = self.base_path(user_id, name, now)
        saved: list[SavedArtifact] = []

        csv_bytes = mapped_csv.encode("utf-8")
        path = self._files.write(f"{base}/mapped.csv", csv_bytes, content_type="text/csv")
        saved.append(SavedArtifact(filename="mapped.csv", path=path,
                                   content_type="text/csv", size_bytes=len(csv_bytes)))

        if batch is not None:
            body = json.dumps(batch.model_dump(mode="json"), indent=2).encode("utf-8")
            path = self._files.write(f"{base}/results.json", body, content_type="application/json")
            saved.append(SavedArtifact(filename="results.json", path=path,
                                       content_type="application/json", size_bytes=len(body)))

        logger.info("Saved %d artifacts under %s", len(saved), base)
        return saved

    def list_runs(self, user_id: str) -> list[str]:
        return self._files.list_files(f"users/{_safe(user_id)}/csvBuilder/")
