"""Tests for scaffold_wizard.detector module."""

import json
from pathlib import Path

from scaffold_wizard.detector import detect_project, suggest_bundles


def _package_json(root: Path, **content) -> None:
    (root / "package.json").write_text(json.dumps(content))


class TestDetectProject:
    def test_empty_directory(self, tmp_path: Path):
        result = detect_project(tmp_path)
        assert result.detected is False
        assert result.project_type is None
        assert result.has_git is False

    def test_git_checkout(self, tmp_path: Path):
        (tmp_path / ".git").mkdir()
        assert detect_project(tmp_path).has_git is True

    def test_node_project_with_lockfile(self, tmp_path: Path):
        _package_json(tmp_path, name="demo")
        (tmp_path / "pnpm-lock.yaml").write_text("")

        result = detect_project(tmp_path)
        assert result.detected is True
        assert result.project_type == "node"
        assert result.package_manager == "pnpm"
        assert result.language == "javascript"

    def test_typescript_framework(self, tmp_path: Path):
        _package_json(tmp_path, dependencies={"react": "^18"}, devDependencies={"next": "^14"})
        (tmp_path / "tsconfig.json").write_text("{}")

        result = detect_project(tmp_path)
        assert result.project_type == "nextjs"
        assert result.language == "typescript"
        assert result.package_manager == "npm"

    def test_monorepo(self, tmp_path: Path):
        _package_json(tmp_path, workspaces=["packages/*"])
        assert detect_project(tmp_path).project_type == "monorepo"

    def test_unreadable_package_json(self, tmp_path: Path):
        (tmp_path / "package.json").write_text("{not json")
        result = detect_project(tmp_path)
        assert result.detected is True
        assert result.project_type == "node"

    def test_python_project(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text("[project]\nname = 'demo'\n")
        (tmp_path / "uv.lock").write_text("")

        result = detect_project(tmp_path)
        assert result.detected is True
        assert result.project_type == "python"
        assert result.language == "python"
        assert result.package_manager == "uv"

    def test_python_without_lockfile(self, tmp_path: Path):
        (tmp_path / "setup.py").write_text("")
        assert detect_project(tmp_path).package_manager == "pip"

    def test_bundles_suggested_from_dependencies(self, tmp_path: Path):
        _package_json(tmp_path, dependencies={"hono": "^4", "drizzle-orm": "^0.30"})
        assert detect_project(tmp_path).suggested_bundles == [
            "hono-drizzle-stack",
            "testing-complete",
            "quality-complete",
        ]

    def test_python_project_has_no_suggestions(self, tmp_path: Path):
        (tmp_path / "pyproject.toml").write_text("")
        assert detect_project(tmp_path).suggested_bundles == []


class TestSuggestBundles:
    def test_nothing_recognised(self):
        assert suggest_bundles({"lodash"}) == []

    def test_express_with_prisma_is_a_stack(self):
        assert suggest_bundles({"express", "@prisma/client"})[0] == "express-prisma-stack"

    def test_orm_outside_a_stack_gets_database_bundle(self):
        assert suggest_bundles({"fastify", "drizzle-orm"}) == [
            "fastify-api",
            "drizzle-database",
            "testing-complete",
            "quality-complete",
        ]

    def test_prisma_not_repeated_when_in_stack(self):
        suggested = suggest_bundles({"express", "prisma"})
        assert "prisma-database" not in suggested

    def test_mongoose_and_react_state(self):
        suggested = suggest_bundles({"react", "zustand", "mongoose"})
        assert suggested[:2] == ["react-zustand-stack", "mongoose-database"]
