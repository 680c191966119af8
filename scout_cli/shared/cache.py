"""Append-only JSON file cache for query results, schemas, and analysis reports."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Iterator

from .config import CacheSettings
from .exceptions import CacheError
from .logging import Logger
from .utils import canonical_fingerprint, json_default, safe_token, stable_hash

QUERIES_DIR = "queries"
SCHEMA_DIR = "schema-snapshots"
TABLE_ANALYSIS_DIR = "reports/table-analysis"
DISCOVERY_DIR = "reports/discovery-reports"

# Fixed width so lexicographic order of file names is chronological order.
STAMP_FORMAT = "%Y%m%dT%H%M%S%fZ"
STAMP_WIDTH = 22

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def queries_subdir(day: datetime) -> str:
    return f"{QUERIES_DIR}/{day.strftime('%Y-%m-%d')}"


@dataclass(frozen=True, slots=True)
class CacheHit:
    """A cache entry that was found and is still within its TTL."""

    payload: Any
    file_path: Path
    age: timedelta
    ttl: timedelta

    def provenance(self) -> dict[str, Any]:
        return {
            "enabled": True,
            "file_path": str(self.file_path),
            "age_hours": round(self.age.total_seconds() / 3600, 2),
            "ttl_hours": round(self.ttl.total_seconds() / 3600, 2),
            "note": "Served from cache; live state may have changed since it was written.",
        }


def write_provenance(path: Path) -> dict[str, Any]:
    """Provenance block attached to a freshly computed result that was cached."""
    return {
        "enabled": True,
        "file_path": str(path),
        "note": "Result written to cache.",
    }


class CacheStore:
    """Timestamped JSON entries under `<base_dir>/<subdir>/`.

    Entries are never modified after they are written. Every failure is logged
    and reported as a miss (reads) or as ``None`` (writes) so callers never see
    cache problems as errors.
    """

    def __init__(
        self,
        settings: CacheSettings,
        *,
        logger: Logger,
        server: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.server = server
        self._clock = clock or _utc_now

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    @property
    def base_dir(self) -> Path:
        return self.settings.base_dir

    def now(self) -> datetime:
        return self._clock()

    def key(self, operation: str, scope: str | None = None, fingerprint: Any = None) -> str:
        """Return the deterministic cache key for an operation.

        A store bound to a server folds the server label into the hash, so two
        connections sharing one cache directory never see each other's entries.
        """
        parts = [_scope_token(scope or "server"), safe_token(operation)]
        if self.server:
            fingerprint = [self.server, fingerprint]
        if fingerprint is not None:
            parts.append(stable_hash(fingerprint))
        return "_".join(parts)

    # ------------------------------------------------------------------
    # Reads

    def read(
        self,
        operation: str,
        subdir: str,
        *,
        scope: str | None = None,
        fingerprint: Any = None,
        ttl: timedelta,
    ) -> CacheHit | None:
        if not self.enabled:
            return None
        key = self.key(operation, scope, fingerprint)
        directory = self.base_dir / subdir
        try:
            path = self._latest_entry(directory, key)
            if path is None:
                self.logger.debug(f"Cache miss for {key}")
                return None
            entry = self._load_entry(path)
        except (OSError, CacheError) as exc:
            self.logger.warning(f"Ignoring unreadable cache entry for {key}: {exc}")
            return None

        age = self.now() - entry["written_at"]
        if age > ttl:
            self.logger.debug(f"Cache entry {path.name} expired ({age} > {ttl})")
            return None
        self.logger.debug(f"Cache hit for {key} ({path.name})")
        return CacheHit(payload=entry["payload"], file_path=path, age=age, ttl=ttl)

    def _latest_entry(self, directory: Path, key: str) -> Path | None:
        if not directory.is_dir():
            return None
        matches = sorted(path for path in self._entries(directory) if _entry_key(path) == key)
        return matches[-1] if matches else None

    @staticmethod
    def _entries(directory: Path) -> Iterator[Path]:
        for path in directory.iterdir():
            if path.is_file() and path.suffix == ".json":
                yield path

    @staticmethod
    def _load_entry(path: Path) -> dict[str, Any]:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CacheError(f"{path.name} is not valid JSON ({exc})") from exc
        if not isinstance(document, dict) or "payload" not in document:
            raise CacheError(f"{path.name} is missing a payload")
        try:
            written_at = datetime.fromisoformat(str(document["timestamp"]))
        except (KeyError, ValueError) as exc:
            raise CacheError(f"{path.name} has no usable timestamp") from exc
        if written_at.tzinfo is None:
            written_at = written_at.replace(tzinfo=timezone.utc)
        return {"payload": document["payload"], "written_at": written_at}

    # ------------------------------------------------------------------
    # Writes

    def write(
        self,
        payload: Any,
        operation: str,
        subdir: str,
        *,
        scope: str | None = None,
        fingerprint: Any = None,
    ) -> Path | None:
        if not self.enabled:
            return None
        key = self.key(operation, scope, fingerprint)
        written_at = self.now()
        document = {
            "timestamp": written_at.isoformat(),
            "server": self.server,
            "scope": scope or "server",
            "operation": operation,
            "key": key,
            "fingerprint": None if fingerprint is None else canonical_fingerprint(fingerprint),
            "payload": payload,
        }
        try:
            text = json.dumps(document, indent=2, default=json_default, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            self.logger.warning(f"Skipping cache write for {key}: payload is not serialisable ({exc})")
            return None

        data = text.encode("utf-8")
        if len(data) > self.settings.max_file_size:
            self.logger.warning(
                f"Skipping cache write for {key}: {len(data)} bytes exceeds limit of "
                f"{self.settings.max_file_size}"
            )
            return None

        try:
            path = self._store(self.base_dir / subdir, key, written_at, data)
        except OSError as exc:
            self.logger.warning(f"Cache write failed for {key}: {exc}")
            return None
        self.logger.debug(f"Cached {operation} result at {path}")
        return path

    @staticmethod
    def _store(directory: Path, key: str, written_at: datetime, data: bytes) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            stamp = written_at
            while True:
                target = directory / f"{_format_stamp(stamp)}_{key}.json"
                try:
                    # link() refuses to overwrite, so an existing entry is never replaced.
                    os.link(temp_name, target)
                    return target
                except FileExistsError:
                    stamp += timedelta(microseconds=1)
        finally:
            if os.path.exists(temp_name):
                os.unlink(temp_name)

    # ------------------------------------------------------------------
    # Housekeeping

    def prune(self, retention_days: int | None = None) -> int:
        """Delete entries older than the retention window; return how many were removed."""
        if not self.enabled or not self.base_dir.is_dir():
            return 0
        days = self.settings.retention_days if retention_days is None else retention_days
        cutoff = self.now() - timedelta(days=days)
        removed = 0
        for path in sorted(self.base_dir.rglob("*.json")):
            stamp = _entry_stamp(path)
            if stamp is None or stamp >= cutoff:
                continue
            try:
                path.unlink()
            except OSError as exc:
                self.logger.warning(f"Could not remove cache entry {path}: {exc}")
                continue
            removed += 1
        for directory in sorted(self.base_dir.rglob("*"), reverse=True):
            if directory.is_dir() and not any(directory.iterdir()):
                directory.rmdir()
        return removed


def _scope_token(scope: str) -> str:
    token = safe_token(scope)
    if token != scope:
        # sanitising is lossy; keep distinct names distinct
        token = f"{token}-{stable_hash(scope, length=8)}"
    return token


def _format_stamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime(STAMP_FORMAT)


def _entry_key(path: Path) -> str | None:
    stem = path.stem
    if len(stem) <= STAMP_WIDTH or stem[STAMP_WIDTH] != "_":
        return None
    return stem[STAMP_WIDTH + 1 :]


def _entry_stamp(path: Path) -> datetime | None:
    if _entry_key(path) is None:
        return None
    try:
        return datetime.strptime(path.stem[:STAMP_WIDTH], STAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None
