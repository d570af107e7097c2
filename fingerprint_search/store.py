"""
Flat JSON corpus store.

The corpus is one pretty-printed JSON array of fingerprint records in a
single file. It is read in full on every query and only ever appended to;
there is no per-record lookup structure.

Read behavior:
    missing or blank file        -> empty corpus
    file that is not valid JSON  -> empty corpus, warning logged
    valid JSON, malformed record -> CorpusReadFailure
"""

import os
import json
import logging
import tempfile
from typing import Iterable, List

from .errors import CorpusReadFailure, CorpusWriteFailure
from .fingerprint import Fingerprint, normalize_filepath

logger = logging.getLogger(__name__)


class CorpusStore:
    """Append-only fingerprint store backed by one JSON file."""

    def __init__(self, path: str):
        """
        Args:
            path: Location of the JSON datastore file. Created on first
                  write, along with missing parent directories.
        """
        self.path = path

    def read_all(self) -> List[Fingerprint]:
        """
        Load every fingerprint in file order.

        Raises:
            CorpusReadFailure: On I/O errors or a malformed record.
        """
        if not os.path.exists(self.path):
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise CorpusReadFailure(f"Could not read corpus {self.path}: {e}") from e

        if not text.strip():
            return []

        try:
            records = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Corpus {self.path} is not valid JSON, treating as empty: {e}")
            return []

        if not isinstance(records, list):
            logger.warning(f"Corpus {self.path} is not a JSON array, treating as empty")
            return []

        fingerprints = []
        for position, record in enumerate(records):
            try:
                fingerprints.append(Fingerprint.from_record(record))
            except (KeyError, TypeError, ValueError) as e:
                raise CorpusReadFailure(
                    f"Malformed record {position} in {self.path}: {e!r}"
                ) from e

        return fingerprints

    def __len__(self):
        return len(self.read_all())

    def contains(self, fingerprint: Fingerprint) -> bool:
        """True if an equal record is already stored."""
        return fingerprint in self.read_all()

    def contains_path(self, filepath: str) -> bool:
        """True if any stored record has this filepath."""
        filepath = normalize_filepath(filepath)
        return any(fp.filepath == filepath for fp in self.read_all())

    def append(self, fingerprint: Fingerprint) -> bool:
        """
        Append a fingerprint unless an equal record already exists.

        Returns:
            True if the record was written.
        """
        return self.extend([fingerprint]) == 1

    def extend(self, fingerprints: Iterable[Fingerprint]) -> int:
        """
        Append several fingerprints with a single write.

        Records equal to one already stored (or earlier in the batch) are
        skipped.

        Returns:
            Number of records written.
        """
        corpus = self.read_all()
        added = 0
        for fingerprint in fingerprints:
            if fingerprint in corpus:
                logger.debug(f"Skipping duplicate record for {fingerprint.filepath}")
                continue
            corpus.append(fingerprint)
            added += 1

        if added:
            self._write(corpus)
        return added

    def clear(self) -> None:
        """Replace the store contents with an empty corpus."""
        self._write([])

    def _write(self, corpus: List[Fingerprint]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump([fp.to_record() for fp in corpus], f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise CorpusWriteFailure(f"Could not write corpus {self.path}: {e}") from e

        logger.debug(f"Wrote {len(corpus)} records to {self.path}")
