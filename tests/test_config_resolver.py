# tests/test_config_resolver.py

"""
Tests for config template loading, substitution, merging and validation.
"""

import copy
from datetime import datetime, timezone

import pytest

from crawl_worker.interfaces.errors import (
    ConfigNotFoundError,
    ConfigResolutionError,
    ConfigValidationError,
)
from crawl_worker.services.config_resolver import (
    ConfigResolver,
    deep_merge,
    infer_category,
    substitute_parameters,
    validate_config,
)

from conftest import SAMPLE_TEMPLATE, make_task, write_template


def _template(**changes):
    template = copy.deepcopy(SAMPLE_TEMPLATE)
    template.update(changes)
    return template


class TestDeepMerge:
    """Test cases for deep_merge."""

    def test_recursive_on_mappings(self):
        assert deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 9, "z": 3}}) == {
            "a": {"x": 1, "y": 9, "z": 3}
        }

    def test_lists_are_replaced(self):
        assert deep_merge({"a": [1, 2, 3]}, {"a": [1, 2]}) == {"a": [1, 2]}

    def test_mapping_replaces_scalar(self):
        assert deep_merge({"a": 1}, {"a": {"b": 2}}) == {"a": {"b": 2}}

    def test_target_not_mutated(self):
        target = {"a": {"x": 1}}

        deep_merge(target, {"a": {"x": 2}})

        assert target == {"a": {"x": 1}}


class TestSubstituteParameters:
    """Test cases for parameter substitution."""

    def test_replaces_every_occurrence(self):
        config = {"url": "https://x/${symbol}", "title": "${symbol} (${symbol})"}

        result = substitute_parameters(config, {"symbol": "2330"})

        assert result == {"url": "https://x/2330", "title": "2330 (2330)"}

    def test_unresolved_placeholder_is_kept(self):
        result = substitute_parameters({"url": "https://x/${missing}"}, {"symbol": "2330"})

        assert result == {"url": "https://x/${missing}"}

    def test_values_are_json_escaped(self):
        result = substitute_parameters({"q": "${name}"}, {"name": 'Say "hi"\\now'})

        assert result == {"q": 'Say "hi"\\now'}

    def test_none_values_are_skipped(self):
        result = substitute_parameters({"d": "${startDate}"}, {"startDate": None})

        assert result == {"d": "${startDate}"}


class TestValidateConfig:
    """Test cases for validate_config."""

    def test_valid_config(self):
        validate_config(SAMPLE_TEMPLATE)

    @pytest.mark.parametrize(
        "config, message",
        [
            (_template(crawlerSettings={"timeout": 5000}), "crawlerSettings.url is required"),
            (_template(selectors={}), "selectors are missing or empty"),
            (_template(selectors={"eps": {"multiple": True}}), 'selector "eps"'),
            (
                _template(crawlerSettings={"url": "https://x", "timeout": 500}),
                "timeout is too small",
            ),
            (
                _template(crawlerSettings={"url": "https://x", "retries": -1}),
                "retries cannot be negative",
            ),
            (_template(outputSettings={"format": "xml"}), "outputSettings.format"),
            (_template(outputSettings={"filename": "out"}), "outputSettings is missing format"),
        ],
    )
    def test_rejections(self, config, message):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config(config)

        assert message in str(exc_info.value)

    def test_errors_are_aggregated(self):
        config = _template(
            crawlerSettings={"timeout": 10, "retries": -2},
            selectors={},
        )

        with pytest.raises(ConfigValidationError) as exc_info:
            validate_config(config)

        error = exc_info.value
        assert len(error.errors) == 4
        assert str(error).startswith("Config validation failed:\n- ")
        assert error.code == "CONFIG_INVALID"


class TestConfigPaths:
    """Test cases for identifier and path inference."""

    @pytest.mark.parametrize(
        "type_slug, data_type, expected",
        [
            ("eps", "eps", "quarterly"),
            ("balance-sheet", None, "quarterly"),
            ("history", None, "daily"),
            ("price", "daily", "daily"),
            ("symbols", None, "metadata"),
            ("labels", None, "metadata"),
        ],
    )
    def test_infer_category(self, type_slug, data_type, expected):
        assert infer_category(type_slug, data_type) == expected

    def test_infer_identifier(self, tmp_path):
        resolver = ConfigResolver(project_root=str(tmp_path))
        task = make_task(exchange_area="US", data_type="balance_sheet")

        assert resolver.infer_config_identifier(task) == "yahoo-finance-us-balance-sheet"

    def test_categorized_path(self, tmp_path):
        resolver = ConfigResolver(project_root=str(tmp_path))

        path = resolver.resolve_config_path("yahoo-finance-tw-eps")

        assert path == tmp_path / "config-categorized" / "quarterly" / "tw" / "yahoo-finance-tw-eps.json"

    def test_uncategorized_path(self, tmp_path):
        resolver = ConfigResolver(project_root=str(tmp_path))

        assert resolver.resolve_config_path("custom") == tmp_path / "config-categorized" / "custom.json"


class TestResolveTaskConfig:
    """Test cases for resolve_task_config."""

    @pytest.mark.asyncio
    async def test_resolve_inferred_template(self, config_resolver, tmp_path):
        """Test resolution through the inferred identifier and flat template dir."""
        task = make_task(
            start_date=datetime(2024, 1, 2, tzinfo=timezone.utc),
            required_config_version="v1.2.0",
        )

        resolved = await config_resolver.resolve_task_config(task)

        assert resolved.crawler_settings.url == "https://finance.example.com/quote/2330/eps"
        assert resolved.output_settings.filename == "2330-eps"
        assert resolved.resolved_parameters["startDate"] == "2024-01-02"
        assert "endDate" not in resolved.resolved_parameters
        assert resolved.source.version == "v1.2.0"
        assert resolved.source.template == str(
            tmp_path / "config" / "templates" / "yahoo-finance-tw-eps.json"
        )

    @pytest.mark.asyncio
    async def test_categorized_template_preferred(self, config_resolver, tmp_path):
        path = write_template(
            tmp_path / "config-categorized" / "quarterly" / "tw" / "yahoo-finance-tw-eps.json",
            _template(crawlerSettings={"url": "https://categorized/${symbol}"}),
        )

        resolved = await config_resolver.resolve_task_config(make_task())

        assert resolved.crawler_settings.url == "https://categorized/2330"
        assert resolved.source.template == str(path)
        assert resolved.source.version == "latest"

    @pytest.mark.asyncio
    async def test_explicit_path_wins(self, config_resolver, tmp_path):
        write_template(
            tmp_path / "custom" / "special.json",
            _template(crawlerSettings={"url": "https://special"}),
        )
        task = make_task(config_file_path="custom/special.json", config_identifier="yahoo-finance-tw-eps")

        resolved = await config_resolver.resolve_task_config(task)

        assert resolved.crawler_settings.url == "https://special"

    @pytest.mark.asyncio
    async def test_identifier_wins_over_inference(self, config_resolver, tmp_path):
        write_template(
            tmp_path / "config" / "templates" / "my-config.json",
            _template(crawlerSettings={"url": "https://mine"}),
        )

        resolved = await config_resolver.resolve_task_config(make_task(config_identifier="my-config"))

        assert resolved.crawler_settings.url == "https://mine"

    @pytest.mark.asyncio
    async def test_task_parameters_and_override(self, config_resolver):
        task = make_task(
            parameters={"region": "tw"},
            config_override={"crawlerSettings": {"timeout": 60000}, "excludeSelectors": [".ad"]},
        )

        resolved = await config_resolver.resolve_task_config(task)

        assert resolved.crawler_settings.timeout == 60000
        assert resolved.crawler_settings.wait_time == 500
        assert resolved.exclude_selectors == [".ad"]
        assert resolved.resolved_parameters["region"] == "tw"

    @pytest.mark.asyncio
    async def test_invalid_override_fails_validation(self, config_resolver):
        task = make_task(config_override={"crawlerSettings": {"timeout": 500}})

        with pytest.raises(ConfigValidationError) as exc_info:
            await config_resolver.resolve_task_config(task)

        assert exc_info.value.details["task"]["id"] == "task-1"

    @pytest.mark.asyncio
    async def test_numeric_strings_are_validated(self, config_resolver):
        task = make_task(config_override={"crawlerSettings": {"timeout": "500", "retries": "-3"}})

        with pytest.raises(ConfigValidationError) as exc_info:
            await config_resolver.resolve_task_config(task)

        assert "timeout is too small" in str(exc_info.value)
        assert "retries cannot be negative" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_numeric_timeout_rejected(self, config_resolver):
        task = make_task(config_override={"crawlerSettings": {"timeout": "soon"}})

        with pytest.raises(ConfigValidationError, match="timeout must be a number"):
            await config_resolver.resolve_task_config(task)

    @pytest.mark.asyncio
    async def test_placeholders_in_typed_fields(self, config_resolver, tmp_path):
        template = _template(
            crawlerSettings={"url": "https://x/${symbol}", "timeout": "${timeout}"},
            selectors={"eps": {"selector": "td", "multiple": "${multi}"}},
        )
        write_template(tmp_path / "config" / "templates" / "typed.json", template)
        task = make_task(config_identifier="typed", parameters={"timeout": 5000, "multi": "true"})

        resolved = await config_resolver.resolve_task_config(task)

        assert resolved.crawler_settings.timeout == 5000
        assert resolved.selectors["eps"].multiple is True

    @pytest.mark.asyncio
    async def test_unresolved_typed_placeholder_rejected(self, config_resolver, tmp_path):
        template = _template(crawlerSettings={"url": "https://x", "timeout": "${timeout}"})
        write_template(tmp_path / "config" / "templates" / "typed.json", template)

        with pytest.raises(ConfigValidationError, match="timeout must be a number"):
            await config_resolver.resolve_task_config(make_task(config_identifier="typed"))

    @pytest.mark.asyncio
    async def test_missing_template(self, config_resolver):
        task = make_task(config_identifier="does-not-exist")

        with pytest.raises(ConfigNotFoundError) as exc_info:
            await config_resolver.resolve_task_config(task)

        assert exc_info.value.code == "CONFIG_NOT_FOUND"
        assert exc_info.value.details["task"]["config_identifier"] == "does-not-exist"

    @pytest.mark.asyncio
    async def test_template_without_selectors_rejected_on_load(self, config_resolver, tmp_path):
        write_template(tmp_path / "config" / "templates" / "empty.json", _template(selectors={}))

        with pytest.raises(ConfigValidationError):
            await config_resolver.load_config_template("empty")

        assert "empty" not in config_resolver.get_cache_stats()["keys"]

    @pytest.mark.asyncio
    async def test_template_without_url_rejected_on_load(self, config_resolver, tmp_path):
        write_template(
            tmp_path / "config" / "templates" / "no-url.json",
            _template(crawlerSettings={"timeout": 5000}),
        )

        with pytest.raises(ConfigValidationError, match="crawlerSettings.url is required"):
            await config_resolver.load_config_template("no-url")

    @pytest.mark.asyncio
    async def test_malformed_json(self, config_resolver, tmp_path):
        path = tmp_path / "config" / "templates" / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ConfigResolutionError) as exc_info:
            await config_resolver.load_config_template("broken")

        assert exc_info.value.code == "CONFIG_INVALID"


class TestTemplateCache:
    """Test cases for the template cache."""

    @pytest.mark.asyncio
    async def test_cache_hit_avoids_reread(self, config_resolver, tmp_path):
        await config_resolver.load_config_template("yahoo-finance-tw-eps")
        (tmp_path / "config" / "templates" / "yahoo-finance-tw-eps.json").unlink()

        template = await config_resolver.load_config_template("yahoo-finance-tw-eps")

        assert template["selectors"]["eps"]["selector"] == "table.eps td"
        stats = config_resolver.get_cache_stats()
        assert stats["size"] == 1
        assert stats["hits"] == 1

    @pytest.mark.asyncio
    async def test_clear_cache(self, config_resolver):
        await config_resolver.load_config_template("yahoo-finance-tw-eps")

        config_resolver.clear_cache()

        assert config_resolver.get_cache_stats()["size"] == 0

    @pytest.mark.asyncio
    async def test_preload_is_best_effort(self, config_resolver):
        await config_resolver.preload_configs(["yahoo-finance-tw-eps", "missing-one"])

        assert config_resolver.get_cache_stats()["keys"] == ["quarterly/tw/yahoo-finance-tw-eps"]

    @pytest.mark.asyncio
    async def test_cache_is_keyed_by_category(self, config_resolver, tmp_path):
        base = tmp_path / "config-categorized"
        write_template(
            base / "quarterly" / "tw" / "yahoo-finance-tw-eps.json",
            _template(crawlerSettings={"url": "https://quarterly"}),
        )
        write_template(
            base / "daily" / "tw" / "yahoo-finance-tw-eps.json",
            _template(crawlerSettings={"url": "https://daily"}),
        )

        quarterly = await config_resolver.load_config_template("yahoo-finance-tw-eps", "eps")
        daily = await config_resolver.load_config_template("yahoo-finance-tw-eps", "daily")

        assert quarterly["crawlerSettings"]["url"] == "https://quarterly"
        assert daily["crawlerSettings"]["url"] == "https://daily"
        assert sorted(config_resolver.get_cache_stats()["keys"]) == [
            "daily/tw/yahoo-finance-tw-eps",
            "quarterly/tw/yahoo-finance-tw-eps",
        ]

    @pytest.mark.asyncio
    async def test_loaded_template_is_a_copy(self, config_resolver):
        template = await config_resolver.load_config_template("yahoo-finance-tw-eps")
        template["selectors"].clear()

        reloaded = await config_resolver.load_config_template("yahoo-finance-tw-eps")

        assert "eps" in reloaded["selectors"]
