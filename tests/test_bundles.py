"""Tests for scaffold_wizard.bundles module."""

from pathlib import Path

from scaffold_wizard.bundles import (
    BundleDefinition,
    find_bundle,
    find_bundles_containing_module,
    format_bundle_for_display,
    get_suggested_bundles,
    group_bundles_by_category,
    load_bundles,
    merge_bundle_selection,
    resolve_bundles,
)


def _bundles() -> list[BundleDefinition]:
    return [
        BundleDefinition(
            id="api",
            category="api",
            modules={"agents": ["api-engineer"], "skills": ["hono-api"]},
        ),
        BundleDefinition(
            id="db",
            category="database",
            modules={
                "agents": ["database-engineer", "api-engineer"],
                "skills": ["drizzle-patterns"],
                "commands": ["create-migration"],
            },
        ),
    ]


class TestBundleDefinition:
    def test_name_from_id(self):
        assert BundleDefinition(id="testing-complete").name == "Testing Complete"

    def test_module_count(self):
        assert _bundles()[1].module_count == 4
        assert BundleDefinition(id="x").module_count == 0


class TestLoadBundles:
    def test_builtin_bundles(self):
        bundles = load_bundles()
        assert len(bundles) == 12
        stack = find_bundle(bundles, "hono-drizzle-stack")
        assert stack.name == "Hono + Drizzle"
        assert stack.tech_stack == ["hono", "drizzle-orm"]
        assert stack.modules["commands"] == ["create-migration"]

    def test_missing_file(self, tmp_path: Path):
        assert load_bundles(tmp_path / "nope.yaml") == []

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bundles.yaml"
        path.write_text("bundles: [unclosed\n")
        assert load_bundles(path) == []

    def test_no_bundles_list(self, tmp_path: Path):
        path = tmp_path / "bundles.yaml"
        path.write_text("bundles: {}\n")
        assert load_bundles(path) == []

    def test_entries_without_id_skipped(self, tmp_path: Path):
        path = tmp_path / "bundles.yaml"
        path.write_text(
            "bundles:\n"
            "  - name: Nameless\n"
            "  - id: docs\n"
            "    tech_stack: [markdown]\n"
            "    modules:\n"
            "      docs: [architecture]\n"
            "      agents: not-a-list\n"
        )
        bundles = load_bundles(path)
        assert [b.id for b in bundles] == ["docs"]
        assert bundles[0].modules == {"docs": ["architecture"]}
        assert bundles[0].tech_stack == ["markdown"]


class TestResolveBundles:
    def test_combined_without_duplicates(self):
        result = resolve_bundles(["api", "db"], _bundles())
        assert result["agents"] == ["api-engineer", "database-engineer"]
        assert result["skills"] == ["hono-api", "drizzle-patterns"]
        assert result["commands"] == ["create-migration"]
        assert result["docs"] == []

    def test_unknown_bundle_ignored(self):
        result = resolve_bundles(["nope", "api"], _bundles())
        assert result["agents"] == ["api-engineer"]

    def test_nothing_selected(self):
        assert all(ids == [] for ids in resolve_bundles([], _bundles()).values())

    def test_merge_adds_individual_modules(self):
        result = merge_bundle_selection(
            ["api"],
            {"skills": ["hono-api", "fastify-api"], "docs": ["conventions"]},
            _bundles(),
        )
        assert result["skills"] == ["hono-api", "fastify-api"]
        assert result["docs"] == ["conventions"]


class TestSuggestions:
    def test_partly_selected_bundle_suggested(self):
        selected = {"agents": ["database-engineer"], "skills": ["drizzle-patterns"]}
        assert [b.id for b in get_suggested_bundles(selected, _bundles())] == ["db"]

    def test_fully_selected_bundle_not_suggested(self):
        selected = {"agents": ["api-engineer"], "skills": ["hono-api"]}
        assert "api" not in [b.id for b in get_suggested_bundles(selected, _bundles())]

    def test_below_threshold(self):
        selected = {"commands": ["create-migration"]}
        assert get_suggested_bundles(selected, _bundles()) == []

    def test_find_bundles_containing_module(self):
        found = find_bundles_containing_module("api-engineer", "agents", _bundles())
        assert [b.id for b in found] == ["api", "db"]
        assert find_bundles_containing_module("api-engineer", "skills", _bundles()) == []


class TestDisplay:
    def test_format(self):
        assert format_bundle_for_display(_bundles()[1]) == "Db (2 agents, 1 skills, 1 commands)"

    def test_format_empty(self):
        assert format_bundle_for_display(BundleDefinition(id="x", name="X")) == "X"

    def test_group_by_category(self):
        bundles = [
            BundleDefinition(id="misc", category="custom"),
            BundleDefinition(id="plain"),
            *_bundles(),
        ]
        grouped = group_bundles_by_category(bundles)
        assert list(grouped) == ["database", "api", "custom", "other"]
        assert [b.id for b in grouped["api"]] == ["api"]
