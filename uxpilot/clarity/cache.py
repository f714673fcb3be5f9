"""Daily dataset cache: one JSON file per calendar day to conserve API quota."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from uxpilot.clarity.client import ClarityClient
from uxpilot.clarity.models import ClarityDataset

logger = logging.getLogger("uxpilot.clarity")

_PREFIX = "clarity-data-"


def _today() -> date:
    return datetime.now(timezone.utc).date()


class DatasetCache:
    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, day: date) -> Path:
        return self._dir / f"{_PREFIX}{day.isoformat()}.json"

    def _read(self, path: Path) -> ClarityDataset | None:
        try:
            return ClarityDataset.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError):
            logger.warning("Ignoring unreadable cache file: %s", path, exc_info=True)
            return None

    def load(self, day: date | None = None) -> ClarityDataset | None:
        """Return the cached dataset for ``day`` (today by default), if any."""
        path = self.path_for(day or _today())
        if not path.exists():
            return None
        logger.info("Loading cached Clarity data: %s", path)
        return self._read(path)

    def load_latest(self) -> ClarityDataset | None:
        """Return the most recent cached dataset regardless of its day."""
        files = sorted(self._dir.glob(f"{_PREFIX}*.json"), reverse=True)
        for path in files:
            dataset = self._read(path)
            if dataset is not None:
                logger.info("Loading most recent Clarity data: %s", path)
                return dataset
        return None

    def save(self, dataset: ClarityDataset, day: date | None = None) -> Path | None:
        """Write the dataset for ``day``. Failures are logged and skipped."""
        path = self.path_for(day or _today())
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            path.write_text(dataset.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        except OSError:
            logger.warning("Could not write Clarity cache %s, continuing", path, exc_info=True)
            return None
        logger.info("Clarity data cached: %s", path)
        return path


async def acquire_dataset(
    cache: DatasetCache,
    client: ClarityClient,
    day: date | None = None,
) -> ClarityDataset:
    """Same-day cache first; otherwise fetch fresh data and cache it."""
    cached = cache.load(day)
    if cached is not None:
        return cached

    dataset = await client.fetch_all()
    cache.save(dataset, day)
    return dataset
