from __future__ import annotations

import os
import re
import shutil
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from uuid import uuid4

from app.core.logging import get_logger
from app.domain.errors import StorageError

from .config import Settings

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")
_DERIVATIVE_STEM = re.compile(r"(.+)-thumb-[a-z]+")


def sanitize_filename(original_name: str | None) -> str:
    """Reduce an uploaded filename to a safe, single-segment blob name."""
    base = PurePosixPath((original_name or "").replace("\\", "/")).name.strip()
    base = _WHITESPACE.sub("-", base)
    base = _UNSAFE.sub("", base).lstrip(".")
    return base or "upload"


class BlobStore(ABC):
    @abstractmethod
    def store(self, temp_path: Path, original_name: str | None) -> str: ...

    @abstractmethod
    def delete(self, locator: str) -> None: ...

    @abstractmethod
    def resolve(self, locator: str) -> Path: ...

    @abstractmethod
    def exists(self, locator: str) -> bool: ...

    @abstractmethod
    def derivative_locator(self, locator: str, variant: str) -> str: ...

    @abstractmethod
    def stage_path(self, name: str) -> Path: ...

    @abstractmethod
    def publish(self, staged: Path, name: str, *, unique: bool = True) -> str: ...


class LocalBlobStore(BlobStore):
    """Flat filesystem directory exposed under a public locator prefix."""

    def __init__(self, base_path: Path, public_prefix: str = "/uploads"):
        self.base_path = Path(base_path)
        self.public_prefix = "/" + public_prefix.strip("/")
        self._lock = threading.Lock()
        self.logger = get_logger(component="blob_store")

    def _ensure_dir(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot create upload directory {self.base_path}: {exc}") from exc

    def _locator_for(self, name: str) -> str:
        return f"{self.public_prefix}/{name}"

    def resolve(self, locator: str) -> Path:
        prefix = self.public_prefix + "/"
        candidate = locator if locator.startswith("/") else "/" + locator
        if not candidate.startswith(prefix):
            raise StorageError(f"locator outside {self.public_prefix}: {locator}")
        name = candidate[len(prefix):]
        if not name or "/" in name or name in {".", ".."}:
            raise StorageError(f"invalid blob locator: {locator}")
        return self.base_path / name

    def exists(self, locator: str) -> bool:
        try:
            return self.resolve(locator).is_file()
        except StorageError:
            return False

    def stage_path(self, name: str) -> Path:
        self._ensure_dir()
        return self.base_path / f".incoming-{uuid4().hex}-{name}"

    def derivative_locator(self, locator: str, variant: str) -> str:
        stem = self.resolve(locator).stem
        return self._locator_for(f"{stem}-thumb-{variant}.jpg")

    def publish(self, staged: Path, name: str, *, unique: bool = True) -> str:
        """Rename a staged file into its public name and return the locator."""
        with self._lock:
            final = self.base_path / name
            if unique:
                final = self._free_name(final)
            try:
                os.replace(staged, final)
            except OSError as exc:
                raise StorageError(f"cannot publish blob {final.name}: {exc}") from exc
        return self._locator_for(final.name)

    def store(self, temp_path: Path, original_name: str | None) -> str:
        self._ensure_dir()
        name = f"{int(time.time() * 1000)}-{sanitize_filename(original_name)}"
        staged = self.stage_path(name)
        try:
            shutil.move(str(temp_path), str(staged))
        except OSError as exc:
            staged.unlink(missing_ok=True)
            raise StorageError(f"cannot move upload into storage: {exc}") from exc
        try:
            locator = self.publish(staged, name)
        except StorageError:
            staged.unlink(missing_ok=True)
            raise
        self.logger.info("blob_stored", locator=locator, original_name=original_name)
        return locator

    def delete(self, locator: str) -> None:
        path = self.resolve(locator)
        try:
            path.unlink()
        except FileNotFoundError:
            self.logger.info("blob_already_absent", locator=locator)
            return
        except OSError as exc:
            raise StorageError(f"cannot delete blob {locator}: {exc}") from exc
        self.logger.info("blob_deleted", locator=locator)

    def _free_name(self, target: Path) -> Path:
        if not self._taken(target):
            return target
        suffix = "".join(target.suffixes[-1:])
        stem = target.name[: len(target.name) - len(suffix)] if suffix else target.name
        counter = 1
        while True:
            candidate = target.with_name(f"{stem}-{counter}{suffix}")
            if not self._taken(candidate):
                return candidate
            counter += 1

    def _taken(self, target: Path) -> bool:
        """A name is taken when its stem, or a thumbnail derived from it, is in use."""
        if target.exists():
            return True
        stem = target.stem
        own = _DERIVATIVE_STEM.fullmatch(stem)
        for existing in self.base_path.iterdir():
            if existing.name.startswith("."):
                continue
            other = existing.stem
            if other == stem:
                return True
            derived = _DERIVATIVE_STEM.fullmatch(other)
            if derived and derived.group(1) == stem:
                return True
            if own and own.group(1) == other:
                return True
        return False


def get_storage(settings: Settings) -> LocalBlobStore:
    return LocalBlobStore(base_path=Path(settings.upload_dir), public_prefix=settings.public_prefix)


__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "sanitize_filename",
    "get_storage",
]
