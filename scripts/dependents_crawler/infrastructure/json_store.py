from __future__ import annotations
import json
import logging
import os
import tempfile
from pathlib import Path

from dependents_crawler.domain.entities import Dependent
from dependents_crawler.domain.errors import StoreError
from dependents_crawler.domain.interfaces import IDeduplicator, IDependentStore

log = logging.getLogger(__name__)

# On-disk name of Dependent.previous_page_url.
PREVIOUS_PAGE_KEY = "previousGithubDependentsPageUrl"


def to_record(dependent: Dependent) -> dict:
    return {
        "owner":           dependent.owner,
        "repo":            dependent.repo,
        "stars":           dependent.stars,
        "forks":           dependent.forks,
        PREVIOUS_PAGE_KEY: dependent.previous_page_url,
    }


def from_record(record: dict) -> Dependent:
    """
    Translate one stored JSON object into a Dependent.
    Raises KeyError/TypeError/ValueError when the object is not a valid record.
    """
    previous = record[PREVIOUS_PAGE_KEY]
    if previous is not None and not isinstance(previous, str):
        raise TypeError(f"{PREVIOUS_PAGE_KEY} must be a string or null")
    for name in ("owner", "repo"):
        if not isinstance(record[name], str):
            raise TypeError(f"{name} must be a string")
    for name in ("stars", "forks"):
        # bool is an int subclass; true/false are not counts.
        if not isinstance(record[name], int) or isinstance(record[name], bool):
            raise TypeError(f"{name} must be an integer")
    return Dependent(
        owner             = record["owner"],
        repo              = record["repo"],
        stars             = record["stars"],
        forks             = record["forks"],
        previous_page_url = previous,
    )


class JsonDependentStore(IDependentStore):
    """
    Concrete implementation of IDependentStore backed by one JSON file
    holding an array of dependent objects.

    Every write rewrites the whole file: the new content goes to a
    temporary file in the same directory which then replaces the store,
    so an interrupted write leaves the previous version intact.

    Single writer only; nothing stops two processes from clobbering
    each other's writes.
    """

    def __init__(self, path: str | os.PathLike, deduplicator: IDeduplicator) -> None:
        self._path         = Path(path)
        self._deduplicator = deduplicator

    @property
    def location(self) -> str:
        return str(self._path)

    def load(self) -> list[Dependent]:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise TypeError("top-level value must be an array")
            return [from_record(record) for record in raw]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise StoreError(self.location, detail=str(exc)) from exc

    def initialize(self) -> None:
        self._write([])
        log.debug("Initialized empty dependents file %s", self._path)

    def append_deduped(self, batch: list[Dependent]) -> list[Dependent]:
        existing = self.load()
        fresh    = self._deduplicator.filter_fresh(existing, batch)

        log.info("Saving %d found dependents to %s …", len(fresh), self._path)
        self._write(existing + fresh)
        return fresh

    def last(self) -> Dependent | None:
        dependents = self.load()
        return dependents[-1] if dependents else None

    def _write(self, dependents: list[Dependent]) -> None:
        payload = json.dumps([to_record(d) for d in dependents])
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
