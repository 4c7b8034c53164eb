"""
JSON File Progress Store — Infrastructure adapter for a local data directory.

Keeps progress and the review log as two JSON documents. Every mutation is
written to a temporary file and moved into place, so a document is either
fully replaced or left untouched.
"""

import logging
import os
import tempfile
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from recall.domain.constants import HISTORY_FILE_NAME, MAX_HISTORY_ENTRIES, PROGRESS_FILE_NAME
from recall.domain.errors import StoreError
from recall.domain.models import CardProgress, ReviewHistoryEntry

from .memory_store import Clock, InMemoryProgressStore

logger = logging.getLogger(__name__)

_PROGRESS_ADAPTER = TypeAdapter(dict[str, CardProgress])
_HISTORY_ADAPTER = TypeAdapter(list[ReviewHistoryEntry])


class JsonFileProgressStore(InMemoryProgressStore):
    """
    Progress store persisted under `data_dir`.

    Documents are read once at construction; this store assumes it is the
    only writer while open.
    """

    def __init__(
        self,
        data_dir: Path,
        max_history: int = MAX_HISTORY_ENTRIES,
        clock: Clock | None = None,
    ):
        super().__init__(max_history=max_history, clock=clock)
        self.data_dir = Path(data_dir)
        self.progress_path = self.data_dir / PROGRESS_FILE_NAME
        self.history_path = self.data_dir / HISTORY_FILE_NAME

        self._progress = self._load(self.progress_path, _PROGRESS_ADAPTER, {})
        self._history = self._load(self.history_path, _HISTORY_ADAPTER, [])[:max_history]
        logger.debug(
            f"Loaded {len(self._progress)} progress records and "
            f"{len(self._history)} history entries from {self.data_dir}"
        )

    def _load(self, path: Path, adapter: TypeAdapter, empty):
        if not path.exists():
            return empty
        try:
            return adapter.validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error(f"Could not read {path}: {e}")
            raise StoreError(f"Could not read {path}") from e

    def _commit(
        self,
        progress: dict[str, CardProgress] | None = None,
        history: list[ReviewHistoryEntry] | None = None,
    ) -> None:
        payloads = []
        if progress is not None:
            payloads.append((self.progress_path, _PROGRESS_ADAPTER.dump_json(progress, indent=2)))
        if history is not None:
            payloads.append((self.history_path, _HISTORY_ADAPTER.dump_json(history, indent=2)))

        # Both documents are staged before either is replaced.
        staged = self._stage(payloads)
        replaced: list[Path] = []
        for path, tmp_name in staged:
            try:
                os.replace(tmp_name, path)
            except OSError as e:
                logger.error(f"Could not write {path}: {e}")
                self._discard(staged)
                self._restore_documents(replaced)
                raise StoreError(f"Could not write {path}") from e
            replaced.append(path)
        super()._commit(progress=progress, history=history)

    def _stage(self, payloads: list[tuple[Path, bytes]]) -> list[tuple[Path, str]]:
        staged: list[tuple[Path, str]] = []
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for path, payload in payloads:
                fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{path.name}.")
                staged.append((path, tmp_name))
                with os.fdopen(fd, "wb") as fh:
                    fh.write(payload)
        except OSError as e:
            logger.error(f"Could not stage writes in {self.data_dir}: {e}")
            self._discard(staged)
            raise StoreError(f"Could not write to {self.data_dir}") from e
        return staged

    def _discard(self, staged: list[tuple[Path, str]]) -> None:
        for _, tmp_name in staged:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def _restore_documents(self, paths: list[Path]) -> None:
        """Rewrite already-replaced documents from the unchanged in-memory state."""
        for path in paths:
            if path == self.progress_path:
                payload = _PROGRESS_ADAPTER.dump_json(self._progress, indent=2)
            else:
                payload = _HISTORY_ADAPTER.dump_json(self._history, indent=2)
            try:
                staged = self._stage([(path, payload)])
            except StoreError:
                logger.error(f"Could not restore {path}; it no longer matches memory")
                continue
            try:
                os.replace(staged[0][1], path)
            except OSError as e:
                logger.error(f"Could not restore {path}; it no longer matches memory: {e}")
                self._discard(staged)
