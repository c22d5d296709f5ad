"""
YAML Subject Repository — Infrastructure adapter for a local data file.

Implements SubjectRepository on top of a single YAML document:

    version: 1
    subjects:
      - id: subj_01H...
        title: ...
        review: {ease_factor: 2.5, repetitions: 0, last_interval: 0, next_review_at: ...}

The whole file is rewritten on each change, through a temp file and
os.replace, so a crash never leaves a half-written document behind.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

from mnemo.domain.errors import SubjectNotFound
from mnemo.domain.models import ReviewState, Subject
from mnemo.domain.ports import SubjectRepository

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


class YamlSubjectRepository(SubjectRepository):
    """
    Stores subjects in a YAML file.

    A record that fails to parse is logged and left out of the listing; it is
    kept verbatim on disk so a later fix can recover it.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    # ------------------------------------------------------------------
    # File access
    # ------------------------------------------------------------------

    def _read_raw(self) -> list[Any]:
        if not self.path.exists():
            return []
        text = self.path.read_text(encoding="utf-8")
        doc = yaml.safe_load(text) or {}
        if not isinstance(doc, dict):
            raise ValueError(f"{self.path}: expected a mapping at the top level")
        records = doc.get("subjects") or []
        if not isinstance(records, list):
            raise ValueError(f"{self.path}: 'subjects' must be a list")
        return records

    def _write_raw(self, records: list[Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        doc = {"version": FORMAT_VERSION, "subjects": records}
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(doc, f, sort_keys=False, allow_unicode=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _parse(record: Any) -> Subject | None:
        try:
            return Subject.from_dict(record)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            rid = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping unreadable subject record {rid!r}: {e}")
            return None

    @staticmethod
    def _index_of(records: list[Any], subject_id: str) -> int:
        for i, record in enumerate(records):
            if isinstance(record, dict) and str(record.get("id")) == subject_id:
                return i
        raise SubjectNotFound(subject_id)

    # ------------------------------------------------------------------
    # SubjectRepository
    # ------------------------------------------------------------------

    async def list_subjects(self) -> list[Subject]:
        subjects = []
        for record in self._read_raw():
            subject = self._parse(record)
            if subject is not None:
                subjects.append(subject)
        return subjects

    async def get_subject(self, subject_id: str) -> Subject:
        records = self._read_raw()
        subject = self._parse(records[self._index_of(records, subject_id)])
        if subject is None:
            raise SubjectNotFound(subject_id)
        return subject

    async def add_subject(self, subject: Subject) -> None:
        records = self._read_raw()
        try:
            records[self._index_of(records, subject.id)] = subject.to_dict()
        except SubjectNotFound:
            records.append(subject.to_dict())
        self._write_raw(records)
        logger.debug(f"Saved subject {subject.id} to {self.path}")

    async def update_schedule(self, subject_id: str, state: ReviewState) -> None:
        records = self._read_raw()
        index = self._index_of(records, subject_id)
        records[index]["review"] = state.to_dict()
        self._write_raw(records)

    async def delete_subject(self, subject_id: str) -> None:
        records = self._read_raw()
        del records[self._index_of(records, subject_id)]
        self._write_raw(records)
