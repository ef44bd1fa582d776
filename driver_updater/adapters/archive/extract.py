"""
Archive adapter — expand zip and tar bundles with a traversal guard.

Every member is checked before anything is written: if one entry would
land outside the destination the whole extraction fails and the
destination is left untouched.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
from pathlib import Path, PurePosixPath

from driver_updater.adapters.base import Adapter, ExecutionContext
from driver_updater.core.domain.workspace import archive_suffix, is_archive
from driver_updater.core.models.action import Receipt

logger = logging.getLogger(__name__)


class UnsafeArchiveError(Exception):
    """An archive member resolves outside the destination directory."""


def _safe_target(root: Path, member_name: str) -> Path:
    # Archives use '/' even when built on Windows; normalise backslashes too
    relative = PurePosixPath(member_name.replace("\\", "/"))
    if relative.is_absolute() or (relative.parts and ":" in relative.parts[0]):
        raise UnsafeArchiveError(f"invalid file path: {member_name}")
    target = (root / Path(*relative.parts)).resolve() if relative.parts else root
    try:
        target.relative_to(root)
    except ValueError:
        raise UnsafeArchiveError(f"invalid file path: {member_name}") from None
    return target


def _extract_zip(source: Path, root: Path) -> int:
    with zipfile.ZipFile(source) as zf:
        members = zf.infolist()
        targets = [(info, _safe_target(root, info.filename)) for info in members]

        for info, target in targets:
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)
    return len(targets)


def _extract_tar(source: Path, root: Path) -> int:
    with tarfile.open(source, "r:*") as tf:
        members = tf.getmembers()
        targets = []
        for member in members:
            if member.issym() or member.islnk():
                raise UnsafeArchiveError(f"links are not allowed: {member.name}")
            targets.append((member, _safe_target(root, member.name)))

        for member, target in targets:
            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if not member.isfile():
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            fobj = tf.extractfile(member)
            if fobj is None:
                continue
            with fobj, open(target, "wb") as dst:
                shutil.copyfileobj(fobj, dst)
    return len(targets)


class ArchiveAdapter(Adapter):
    """Expand an archive into a directory.

    Action params:
        source (str): Archive path (relative to work_dir or absolute).
        dest (str): Destination directory (created if missing).
    """

    @property
    def name(self) -> str:
        return "archive"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        source = context.params.get("source", "")
        dest = context.params.get("dest", "")
        if not source:
            return False, "Missing required param: 'source'"
        if not dest:
            return False, "Missing required param: 'dest'"
        if not is_archive(source):
            return False, f"Unsupported archive type: {source}"
        return True, ""

    def _resolve(self, context: ExecutionContext, raw: str) -> Path:
        path = Path(raw)
        if not path.is_absolute():
            path = Path(context.working_dir) / path
        return path

    def execute(self, context: ExecutionContext) -> Receipt:
        source = self._resolve(context, context.params["source"])
        root = self._resolve(context, context.params["dest"]).resolve()

        if not source.is_file():
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Archive not found: {source}",
            )

        try:
            root.mkdir(parents=True, exist_ok=True)
            if archive_suffix(source.name) == ".zip":
                count = _extract_zip(source, root)
            else:
                count = _extract_tar(source, root)
        except UnsafeArchiveError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=str(e),
                metadata={"source": str(source), "traversal": True},
            )
        except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot extract {source.name}: {e}",
                metadata={"source": str(source)},
            )

        logger.debug("Extracted %d entries from %s into %s", count, source, root)
        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=str(root),
            metadata={"source": str(source), "entries": count},
        )
