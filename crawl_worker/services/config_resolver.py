# services/config_resolver.py

"""
Turns a crawl task into a resolved, validated execution config.

Templates are read from a categorized config directory or a flat template
directory and cached by their categorized location. Resolution substitutes
task parameters, merges the task's override and validates the result.
"""

import asyncio
import copy
import json
import re
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from pydantic import ValidationError

from common.cache import CacheFactory, CacheType
from common.logger import LoggerFactory, LoggerType, LogLevel

from ..interfaces.errors import (
    ConfigNotFoundError,
    ConfigResolutionError,
    ConfigValidationError,
)
from ..schemas.config_schemas import ConfigSource, ConfigTemplate, ResolvedConfig
from ..schemas.task_schemas import CrawlTask

PLACEHOLDER_PATTERN = re.compile(r"\$\{[^}]+\}")
SUPPORTED_OUTPUT_FORMATS = ("json", "csv", "xlsx")
MIN_TIMEOUT_MS = 1000

logger = LoggerFactory.get_logger(
    name="config-resolver", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)


class _CachedTemplate(NamedTuple):
    template: Dict[str, Any]
    path: str


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge ``source`` into a copy of ``target``.

    Mappings are merged key by key; scalars and lists from ``source``
    replace whatever ``target`` holds.
    """
    result = dict(target)
    for key, value in source.items():
        if isinstance(value, dict):
            existing = result.get(key)
            result[key] = deep_merge(existing if isinstance(existing, dict) else {}, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def substitute_parameters(config: Dict[str, Any], parameters: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace ``${key}`` placeholders anywhere in ``config``.

    Values are JSON-escaped before insertion so quotes or backslashes in a
    parameter cannot break the document. Unresolved placeholders are logged
    and left in place.
    """
    text = json.dumps(config, ensure_ascii=False)
    for key, value in parameters.items():
        if value is None:
            continue
        escaped = json.dumps(str(value), ensure_ascii=False)[1:-1]
        text = text.replace("${" + key + "}", escaped)

    unresolved = sorted(set(PLACEHOLDER_PATTERN.findall(text)))
    if unresolved:
        logger.warning(f"⚠️ Unresolved parameter placeholders: {', '.join(unresolved)}")

    return json.loads(text)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def validate_config(config: Union[Dict[str, Any], ConfigTemplate]) -> None:
    """
    Check a config before it is handed to the crawl engine.

    Raises:
        ConfigValidationError: Listing every rule the config violates
    """
    if isinstance(config, ConfigTemplate):
        config = config.to_engine_payload()

    errors: List[str] = []

    crawler_settings = config.get("crawlerSettings")
    if not isinstance(crawler_settings, dict):
        errors.append("crawlerSettings is required")
    else:
        if not crawler_settings.get("url"):
            errors.append("crawlerSettings.url is required")
        if crawler_settings.get("timeout") is not None:
            timeout = _as_number(crawler_settings["timeout"])
            if timeout is None:
                errors.append("crawlerSettings.timeout must be a number")
            elif timeout < MIN_TIMEOUT_MS:
                errors.append(f"crawlerSettings.timeout is too small (minimum {MIN_TIMEOUT_MS}ms)")
        if crawler_settings.get("retries") is not None:
            retries = _as_number(crawler_settings["retries"])
            if retries is None:
                errors.append("crawlerSettings.retries must be a number")
            elif retries < 0:
                errors.append("crawlerSettings.retries cannot be negative")

    selectors = config.get("selectors")
    if not isinstance(selectors, dict) or not selectors:
        errors.append("selectors are missing or empty")
    else:
        for name, rule in selectors.items():
            if not isinstance(rule, dict) or not rule.get("selector"):
                errors.append(f'selector "{name}" is missing the selector attribute')

    output_settings = config.get("outputSettings")
    if output_settings is not None:
        output_format = output_settings.get("format") if isinstance(output_settings, dict) else None
        if not output_format:
            errors.append("outputSettings is missing format")
        elif output_format not in SUPPORTED_OUTPUT_FORMATS:
            errors.append(
                f"outputSettings.format must be one of {', '.join(SUPPORTED_OUTPUT_FORMATS)}"
            )

    if errors:
        raise ConfigValidationError(errors)


def infer_category(type_slug: str, data_type: Optional[str] = None) -> str:
    if "history" in type_slug or (data_type or "").lower() == "daily":
        return "daily"
    if "symbol" in type_slug or "label" in type_slug:
        return "metadata"
    return "quarterly"


class ConfigResolver:
    """
    Resolves task configs from the template store.

    Source precedence for a task: explicit ``config_file_path``, then
    ``config_identifier``, then an identifier inferred from the task's region
    and data type.
    """

    def __init__(
        self,
        project_root: str = ".",
        config_base_dir: str = "config-categorized",
        template_base_dir: str = "config/templates",
        identifier_prefix: str = "yahoo-finance",
        cache_size: int = 500,
    ):
        self.project_root = Path(project_root).resolve()
        self.config_base_dir = self.project_root / config_base_dir
        self.template_base_dir = self.project_root / template_base_dir
        self.identifier_prefix = identifier_prefix
        self._cache = CacheFactory.create_cache(
            cache_type=CacheType.MEMORY, max_size=cache_size, default_ttl=None
        )

    async def resolve_task_config(self, task: CrawlTask) -> ResolvedConfig:
        """
        Produce the execution config for ``task``.

        Raises:
            ConfigResolutionError: ``ConfigNotFoundError`` when no template
                exists, otherwise a config-invalid error. ``details["task"]``
                identifies the task's config.
        """
        label = task.config_file_path or task.config_identifier or "inferred"
        logger.info(f"🔧 Resolving config for task {task.id}: {label}")

        try:
            template, source_path = await self._load_for_task(task)

            parameters = self._build_parameter_table(task)
            config = substitute_parameters(template, parameters)

            if task.config_override:
                logger.info(f"🔧 Applying config override: {list(task.config_override.keys())}")
                config = deep_merge(config, task.config_override)

            validate_config(config)

            resolved = ResolvedConfig.model_validate(
                {
                    **config,
                    "resolvedParameters": parameters,
                    "source": ConfigSource(
                        template=source_path,
                        version=task.required_config_version or "latest",
                    ),
                }
            )
        except ConfigResolutionError as e:
            e.details.setdefault("task", self._task_identity(task))
            logger.error(f"❌ Config resolution failed for task {task.id}: {e}")
            raise
        except ValidationError as e:
            logger.error(f"❌ Resolved config for task {task.id} is malformed: {e}")
            raise ConfigResolutionError(
                f"Resolved config is malformed: {e}", {"task": self._task_identity(task)}
            ) from e

        logger.info(f"✅ Config resolved for task {task.id}")
        return resolved

    async def load_config_template(
        self, identifier: str, data_type: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Load a raw template by identifier, from cache when possible.

        Templates stay untyped until resolution so placeholders may sit in
        numeric or boolean fields.
        """
        cached = await self._load_cached(identifier, data_type)
        return copy.deepcopy(cached.template)

    def validate_config(self, config: Union[Dict[str, Any], ConfigTemplate]) -> None:
        validate_config(config)

    def infer_config_identifier(self, task: CrawlTask) -> str:
        region = task.exchange_area.lower()
        type_slug = task.data_type.lower().replace("_", "-")
        return f"{self.identifier_prefix}-{region}-{type_slug}"

    def resolve_config_path(self, identifier: str, data_type: Optional[str] = None) -> Path:
        """
        Map an identifier to its location in the categorized config directory.

        ``<prefix>-<region>-<type>`` maps to ``<category>/<region>/<identifier>.json``;
        any other identifier maps to ``<identifier>.json`` at the top level.
        """
        prefix = f"{self.identifier_prefix}-"
        if identifier.startswith(prefix):
            region, _, type_slug = identifier[len(prefix) :].partition("-")
            if region and type_slug:
                category = infer_category(type_slug, data_type)
                return self.config_base_dir / category / region.lower() / f"{identifier}.json"
        return self.config_base_dir / f"{identifier}.json"

    def resolve_template_path(self, identifier: str) -> Path:
        return self.template_base_dir / f"{identifier}.json"

    def clear_cache(self) -> None:
        logger.info("🗑️ Clearing config template cache")
        self._cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        stats = self._cache.get_stats()
        return {
            "size": stats.size,
            "keys": self._cache.keys(),
            "hits": stats.hits,
            "misses": stats.misses,
            "hit_rate": stats.hit_rate,
        }

    async def preload_configs(self, identifiers: List[str]) -> None:
        """Warm the cache; failures are logged and skipped."""
        logger.info(f"📦 Preloading {len(identifiers)} config(s)...")

        async def _preload(identifier: str) -> None:
            try:
                await self.load_config_template(identifier)
                logger.debug(f"✅ Preloaded: {identifier}")
            except ConfigResolutionError as e:
                logger.warning(f"⚠️ Preload failed: {identifier} - {e}")

        await asyncio.gather(*(_preload(identifier) for identifier in identifiers))
        logger.info(f"📦 Preload complete, cache size: {self._cache.get_stats().size}")

    async def _load_for_task(self, task: CrawlTask) -> Tuple[Dict[str, Any], str]:
        if task.config_file_path:
            path = Path(task.config_file_path)
            if not path.is_absolute():
                path = self.project_root / path
            return await self._load_from_path(path), str(path)

        identifier = task.config_identifier or self.infer_config_identifier(task)
        cached = await self._load_cached(identifier, task.data_type)
        return cached.template, cached.path

    def cache_key(self, identifier: str, data_type: Optional[str] = None) -> str:
        """Key a template by its categorized location, e.g. ``quarterly/tw/<identifier>``."""
        path = self.resolve_config_path(identifier, data_type)
        return path.relative_to(self.config_base_dir).with_suffix("").as_posix()

    async def _load_cached(self, identifier: str, data_type: Optional[str]) -> _CachedTemplate:
        key = self.cache_key(identifier, data_type)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"📦 Using cached config: {key}")
            return cached

        for path in (
            self.resolve_config_path(identifier, data_type),
            self.resolve_template_path(identifier),
        ):
            if path.is_file():
                entry = _CachedTemplate(await self._load_from_path(path), str(path))
                self._cache.set(key, entry)
                return entry

        raise ConfigNotFoundError(
            f"Config not found: {identifier}", {"identifier": identifier}
        )

    async def _load_from_path(self, path: Path) -> Dict[str, Any]:
        logger.info(f"📄 Loading config file: {path}")
        if not path.is_file():
            raise ConfigNotFoundError(f"Config file does not exist: {path}", {"path": str(path)})

        try:
            raw = json.loads(await asyncio.to_thread(path.read_text, encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigResolutionError(
                f"Failed to read config file {path}: {e}", {"path": str(path)}
            ) from e

        if not isinstance(raw, dict):
            raise ConfigResolutionError(
                f"Config file {path} must contain a JSON object", {"path": str(path)}
            )
        errors: List[str] = []
        crawler_settings = raw.get("crawlerSettings")
        if not isinstance(crawler_settings, dict) or not crawler_settings.get("url"):
            errors.append("crawlerSettings.url is required")
        if not isinstance(raw.get("selectors"), dict) or not raw["selectors"]:
            errors.append("selectors are missing or empty")
        if errors:
            raise ConfigValidationError(errors, {"path": str(path)})

        return raw

    @staticmethod
    def _build_parameter_table(task: CrawlTask) -> Dict[str, Any]:
        builtins = {
            "symbol": task.symbol_code,
            "symbolCode": task.symbol_code,
            "exchange": task.exchange_area,
            "exchangeArea": task.exchange_area,
            "dataType": task.data_type,
            "startDate": task.start_date.date().isoformat() if task.start_date else None,
            "endDate": task.end_date.date().isoformat() if task.end_date else None,
        }
        table = dict(task.parameters)
        table.update({key: value for key, value in builtins.items() if value is not None})
        return table

    @staticmethod
    def _task_identity(task: CrawlTask) -> Dict[str, Any]:
        return {
            "id": task.id,
            "config_identifier": task.config_identifier,
            "config_file_path": task.config_file_path,
        }
