# services/version_manager.py

"""
Version detection, compatibility checks and self-upgrade for the worker.
"""

import asyncio
import json
import re
import shutil
from functools import cmp_to_key
from pathlib import Path
from typing import List, Optional

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.errors import (
    VersionControlError,
    VersionRestoreError,
    VersionSwitchError,
)
from ..interfaces.version_control import VersionControlTooling
from ..models.worker import (
    BackupState,
    VersionAction,
    VersionCheckResult,
    VersionInfo,
    VersionSwitchRecord,
)
from ..schemas.task_schemas import VersionConstraints

UNKNOWN_VERSION = "unknown"

_SEMVER_TAG = re.compile(r"^v?\d+\.\d+\.\d+")
_MANIFEST_VERSION = re.compile(r"""^__version__\s*=\s*["']([^"']+)["']""", re.MULTILINE)
_LEADING_DIGITS = re.compile(r"\d+")

logger = LoggerFactory.get_logger(
    name="version-manager", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)


def strip_version_prefix(version: str) -> str:
    version = version.strip()
    return version[1:] if version[:1] in ("v", "V") else version


def _version_components(version: str) -> List[int]:
    components = []
    for piece in strip_version_prefix(version).split("."):
        match = _LEADING_DIGITS.match(piece)
        components.append(int(match.group()) if match else 0)
    return components


def compare_versions(a: str, b: str) -> int:
    """
    Compare two dot-separated versions.

    A leading ``v`` is ignored and missing trailing components count as
    zero, so ``v1.2`` equals ``1.2.0``.

    Returns:
        int: -1, 0 or 1 when ``a`` is lower, equal or higher than ``b``
    """
    parts_a = _version_components(a)
    parts_b = _version_components(b)
    length = max(len(parts_a), len(parts_b))
    parts_a += [0] * (length - len(parts_a))
    parts_b += [0] * (length - len(parts_b))
    return (parts_a > parts_b) - (parts_a < parts_b)


def _contains_version(versions: List[str], version: str) -> bool:
    return any(compare_versions(candidate, version) == 0 for candidate in versions)


def evaluate_compatibility(
    current_version: str,
    required_version: Optional[str] = None,
    constraints: Optional[VersionConstraints] = None,
) -> VersionCheckResult:
    """
    Decide whether ``current_version`` satisfies a task's requirements.

    Rules are applied in order and the first failing rule decides:
    blacklist, minimum, maximum, exact required version, preferred list.
    """
    if not required_version and constraints is None:
        return VersionCheckResult(
            compatible=True,
            current_version=current_version,
            reason="No version requirements",
        )

    constraints = constraints or VersionConstraints()

    if constraints.blacklist_versions and _contains_version(
        constraints.blacklist_versions, current_version
    ):
        return VersionCheckResult(
            compatible=False,
            current_version=current_version,
            required_version=required_version,
            action=VersionAction.UPGRADE,
            reason=f"Current version {current_version} is blacklisted",
            details={"blacklist_versions": constraints.blacklist_versions},
        )

    if constraints.min_version and compare_versions(current_version, constraints.min_version) < 0:
        return VersionCheckResult(
            compatible=False,
            current_version=current_version,
            required_version=constraints.min_version,
            action=VersionAction.UPGRADE,
            reason=(
                f"Current version {current_version} is below minimum "
                f"requirement {constraints.min_version}"
            ),
            details={"min_version": constraints.min_version},
        )

    if constraints.max_version and compare_versions(current_version, constraints.max_version) > 0:
        return VersionCheckResult(
            compatible=False,
            current_version=current_version,
            required_version=constraints.max_version,
            action=VersionAction.DOWNGRADE,
            reason=(
                f"Current version {current_version} exceeds maximum "
                f"allowed {constraints.max_version}"
            ),
            details={"max_version": constraints.max_version},
        )

    if required_version:
        comparison = compare_versions(current_version, required_version)
        if comparison == 0:
            return VersionCheckResult(
                compatible=True,
                current_version=current_version,
                required_version=required_version,
                reason="Exact version match",
            )
        return VersionCheckResult(
            compatible=False,
            current_version=current_version,
            required_version=required_version,
            action=VersionAction.UPGRADE if comparison < 0 else VersionAction.DOWNGRADE,
            reason=f"Version mismatch: current {current_version}, required {required_version}",
        )

    if constraints.preferred_versions and not _contains_version(
        constraints.preferred_versions, current_version
    ):
        latest_preferred = max(constraints.preferred_versions, key=cmp_to_key(compare_versions))
        return VersionCheckResult(
            compatible=False,
            current_version=current_version,
            required_version=latest_preferred,
            action=(
                VersionAction.UPGRADE
                if compare_versions(current_version, latest_preferred) < 0
                else VersionAction.DOWNGRADE
            ),
            reason=(
                "Current version not in preferred list, "
                f"suggest switching to {latest_preferred}"
            ),
            details={"preferred_versions": constraints.preferred_versions},
        )

    return VersionCheckResult(
        compatible=True,
        current_version=current_version,
        required_version=required_version,
        reason="Version constraints satisfied",
    )


class VersionManager:
    """
    Tracks and changes the worker's software version.

    Handles:
    - Version detection from the latest git tag and the package manifest
    - Compatibility checks against task requirements
    - Switching to another tagged version with backup and rollback
    - Switch history bookkeeping
    """

    BACKUP_FILE = "backup-state.json"
    HISTORY_FILE = "switch-history.json"

    def __init__(
        self,
        tooling: VersionControlTooling,
        project_root: str = ".",
        version_cache_dir: str = ".version-cache",
        manifest_path: str = "crawl_worker/__init__.py",
        prefer_git_version: bool = False,
        history_limit: int = 50,
    ):
        """
        Initialize the version manager.

        Args:
            tooling: Git and dependency tooling
            project_root: Worker checkout directory
            version_cache_dir: Directory for backup state and switch history,
                relative paths are resolved against ``project_root``
            manifest_path: File declaring ``__version__``
            prefer_git_version: Use the git tag when both sources exist
            history_limit: Number of switch records to keep
        """
        self._tooling = tooling
        self.project_root = Path(project_root).resolve()
        self.version_cache_dir = self.project_root / version_cache_dir
        self.manifest_path = self.project_root / manifest_path
        self.prefer_git_version = prefer_git_version
        self.history_limit = history_limit
        self._switch_lock = asyncio.Lock()

    async def get_current_version_info(self) -> VersionInfo:
        """Read both version sources and pick the authoritative one."""
        package_version = self._get_package_version()
        git_tag = await self._get_git_version()

        if git_tag and package_version:
            consistent = strip_version_prefix(git_tag) == strip_version_prefix(package_version)
            if not consistent:
                logger.warning(
                    f"⚠️ Version mismatch: manifest({package_version}) vs git({git_tag})"
                )
            if self.prefer_git_version:
                current, source = git_tag, "git"
            else:
                current, source = f"v{strip_version_prefix(package_version)}", "package"
            return VersionInfo(
                current=current,
                git_tag=git_tag,
                package_version=package_version,
                source=source,
                consistent=consistent,
            )

        if package_version:
            return VersionInfo(
                current=f"v{strip_version_prefix(package_version)}",
                package_version=package_version,
                source="package",
                consistent=True,
            )

        if git_tag:
            return VersionInfo(current=git_tag, git_tag=git_tag, source="git", consistent=True)

        return VersionInfo(current=UNKNOWN_VERSION, source="unknown", consistent=False)

    async def get_current_version(self) -> str:
        info = await self.get_current_version_info()
        return info.current

    @staticmethod
    def compare_versions(a: str, b: str) -> int:
        return compare_versions(a, b)

    async def check_version_compatibility(
        self,
        required_version: Optional[str] = None,
        constraints: Optional[VersionConstraints] = None,
    ) -> VersionCheckResult:
        current_version = await self.get_current_version()
        return evaluate_compatibility(current_version, required_version, constraints)

    async def switch_version(self, target_version: str) -> VersionInfo:
        """
        Check out ``target_version`` and reinstall dependencies.

        Switches are serialized; a caller that waited for another switch to
        the same version returns without switching again.

        Returns:
            VersionInfo: Version information after the switch

        Raises:
            VersionSwitchError: The switch failed and the previous state is
                back in place (or was never left)
            VersionRestoreError: The switch failed and rolling back failed too
        """
        async with self._switch_lock:
            before = await self.get_current_version_info()
            if before.source != "unknown" and compare_versions(before.current, target_version) == 0:
                logger.info(f"✅ Already running {before.current}, no switch needed")
                return before

            logger.info(f"🔄 Switching version: {before.current} → {target_version}")

            try:
                logger.info("📥 Fetching latest git tags...")
                await self._tooling.fetch_tags()
            except VersionControlError as e:
                raise VersionSwitchError(f"Failed to fetch tags: {e}", target_version) from e

            available_tags = await self.get_available_tags()
            tag = self._match_tag(target_version, available_tags)
            if tag is None:
                nearby = self._nearby_tags(target_version, available_tags)
                raise VersionSwitchError(
                    f"Version {target_version} does not exist. "
                    f"Available versions: {', '.join(nearby) or 'none'}",
                    target_version,
                    nearby,
                )

            try:
                backup = await self._backup_current_state(before.current)
            except (VersionControlError, OSError) as e:
                raise VersionSwitchError(
                    f"Failed to back up current state: {e}", target_version
                ) from e

            try:
                logger.info(f"📦 Checking out {tag}...")
                await self._tooling.checkout(f"tags/{tag}")
                logger.info("📚 Reinstalling dependencies...")
                await self._tooling.reinstall_dependencies()

                after = await self.get_current_version_info()
                if compare_versions(after.current, tag) != 0:
                    raise VersionControlError(
                        f"Version after checkout is {after.current}, expected {tag}"
                    )
            except Exception as e:
                logger.error(f"❌ Version switch failed: {e}")
                await self._restore_from_backup(backup, target_version)
                raise VersionSwitchError(
                    f"Switch to {target_version} failed and was rolled back: {e}",
                    target_version,
                ) from e

            self._record_version_switch(before.current, after.current)
            logger.info(f"✅ Version switch complete: {after.current}")
            return after

    async def get_available_tags(self) -> List[str]:
        """Return semantic version tags, highest first."""
        try:
            tags = await self._tooling.list_tags()
        except VersionControlError as e:
            logger.warning(f"⚠️ Unable to list git tags: {e}")
            return []
        versions = [tag.strip() for tag in tags if _SEMVER_TAG.match(tag.strip())]
        return sorted(versions, key=cmp_to_key(compare_versions), reverse=True)

    def get_version_switch_history(self) -> List[VersionSwitchRecord]:
        history_path = self.version_cache_dir / self.HISTORY_FILE
        if not history_path.exists():
            return []
        try:
            entries = json.loads(history_path.read_text(encoding="utf-8"))
            return [VersionSwitchRecord.model_validate(entry) for entry in entries]
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Failed to read version switch history: {e}")
            return []

    def clean_version_cache(self) -> None:
        if self.version_cache_dir.exists():
            shutil.rmtree(self.version_cache_dir)
            logger.info(f"🗑️ Version cache removed: {self.version_cache_dir}")

    def _get_package_version(self) -> Optional[str]:
        try:
            content = self.manifest_path.read_text(encoding="utf-8")
        except OSError:
            return None
        match = _MANIFEST_VERSION.search(content)
        return match.group(1) if match else None

    async def _get_git_version(self) -> Optional[str]:
        # No reachable tag is a normal state, not a warning
        try:
            tag = await self._tooling.describe_latest_tag()
        except VersionControlError:
            return None
        return tag.strip() if tag else None

    @staticmethod
    def _match_tag(target_version: str, available_tags: List[str]) -> Optional[str]:
        if target_version in available_tags:
            return target_version
        for tag in available_tags:
            if compare_versions(tag, target_version) == 0:
                return tag
        return None

    @staticmethod
    def _nearby_tags(target_version: str, available_tags: List[str], limit: int = 5) -> List[str]:
        ordered = sorted(available_tags, key=cmp_to_key(compare_versions))
        position = sum(1 for tag in ordered if compare_versions(tag, target_version) < 0)
        start = max(0, min(position - limit // 2, len(ordered) - limit))
        return ordered[start : start + limit]

    async def _backup_current_state(self, current_version: str) -> BackupState:
        backup = BackupState(
            branch=await self._tooling.current_branch(),
            commit=await self._tooling.current_commit(),
            version=current_version,
        )
        self.version_cache_dir.mkdir(parents=True, exist_ok=True)
        backup_path = self.version_cache_dir / self.BACKUP_FILE
        backup_path.write_text(backup.model_dump_json(indent=2), encoding="utf-8")
        logger.info(f"💾 Current state backed up to {backup_path}")
        return backup

    async def _restore_from_backup(self, backup: BackupState, target_version: str) -> None:
        # A detached HEAD can only be restored by commit
        ref = backup.commit if backup.branch == "HEAD" else backup.branch
        logger.info(f"🔙 Restoring pre-switch state: {ref} ({backup.version})")
        try:
            await self._tooling.checkout(ref)
            await self._tooling.reinstall_dependencies()
        except Exception as e:
            logger.critical(f"❌ Restore failed, worker version state is inconsistent: {e}")
            raise VersionRestoreError(
                f"Failed to restore {ref} after switching to {target_version}: {e}",
                target_version,
            ) from e
        logger.info(f"✅ Restored to {ref} ({backup.version})")

    def _record_version_switch(self, from_version: str, to_version: str) -> None:
        history = self.get_version_switch_history()
        history.append(VersionSwitchRecord(from_version=from_version, to_version=to_version))
        history = history[-self.history_limit :]
        try:
            self.version_cache_dir.mkdir(parents=True, exist_ok=True)
            payload = [record.model_dump(mode="json", by_alias=True) for record in history]
            (self.version_cache_dir / self.HISTORY_FILE).write_text(
                json.dumps(payload, indent=2), encoding="utf-8"
            )
        except OSError as e:
            logger.warning(f"⚠️ Failed to record version switch: {e}")
