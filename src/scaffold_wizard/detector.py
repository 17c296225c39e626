"""Detect what kind of project lives in a directory.

Only marker files are inspected; nothing is executed.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from .logging import get_logger

log = get_logger("detector")

# First match wins
LOCKFILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("package-lock.json", "npm"),
    ("bun.lockb", "bun"),
    ("uv.lock", "uv"),
    ("poetry.lock", "poetry"),
)

_FRAMEWORK_DEPS = (
    ("next", "nextjs"),
    ("astro", "astro"),
    ("react", "react"),
    ("hono", "hono"),
    ("express", "express"),
    ("fastify", "fastify"),
)


@dataclass
class ProjectDetection:
    """Result of inspecting a project directory.

    Attributes:
        detected: Whether any project marker file was found.
        project_type: e.g. "nextjs", "react", "node", "python", "monorepo".
        package_manager: Package manager implied by the lockfile.
        language: "typescript", "javascript" or "python".
        has_git: Whether the directory is a git checkout.
        suggested_bundles: Bundle ids matching the detected dependencies.
    """

    detected: bool = False
    project_type: str | None = None
    package_manager: str | None = None
    language: str | None = None
    has_git: bool = False
    suggested_bundles: list[str] = field(default_factory=list)


def _read_package_json(path: Path) -> dict:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("unreadable package.json", path=str(path), error=str(exc))
        return {}
    return data if isinstance(data, dict) else {}


def _detect_package_manager(project_root: Path) -> str | None:
    for filename, manager in LOCKFILES:
        if (project_root / filename).exists():
            return manager
    return None


def _dependencies(package_json: dict) -> set[str]:
    return {
        *(package_json.get("dependencies") or {}),
        *(package_json.get("devDependencies") or {}),
    }


def _detect_node_type(project_root: Path, package_json: dict) -> str:
    if (
        package_json.get("workspaces")
        or (project_root / "turbo.json").exists()
        or (project_root / "pnpm-workspace.yaml").exists()
    ):
        return "monorepo"

    deps = _dependencies(package_json)
    for dep, project_type in _FRAMEWORK_DEPS:
        if dep in deps:
            return project_type
    return "node"


def suggest_bundles(deps: set[str]) -> list[str]:
    """Bundle ids worth preselecting for a project with these dependencies.

    Stack bundles win over their parts; an ORM outside a stack gets its
    database bundle. Testing and quality are added to any suggestion.
    """
    has_drizzle = bool(deps & {"drizzle", "drizzle-orm"})
    has_prisma = bool(deps & {"prisma", "@prisma/client"})
    suggested: list[str] = []

    if deps & {"hono", "@hono/node-server"}:
        suggested.append("hono-drizzle-stack" if has_drizzle else "hono-api")
    elif "express" in deps:
        suggested.append("express-prisma-stack" if has_prisma else "express-api")
    elif "fastify" in deps:
        suggested.append("fastify-api")

    if "react" in deps and "zustand" in deps:
        suggested.append("react-zustand-stack")

    if has_drizzle and not any("drizzle" in b for b in suggested):
        suggested.append("drizzle-database")
    if has_prisma and not any("prisma" in b for b in suggested):
        suggested.append("prisma-database")
    if "mongoose" in deps:
        suggested.append("mongoose-database")

    if suggested:
        suggested.extend(["testing-complete", "quality-complete"])
    return suggested


def detect_project(project_root: Path) -> ProjectDetection:
    """Inspect ``project_root`` for package.json, pyproject.toml, lockfiles and .git."""
    project_root = Path(project_root)
    result = ProjectDetection(
        has_git=(project_root / ".git").exists(),
        package_manager=_detect_package_manager(project_root),
    )

    package_json = project_root / "package.json"
    if package_json.exists():
        result.detected = True
        data = _read_package_json(package_json)
        result.project_type = _detect_node_type(project_root, data)
        result.suggested_bundles = suggest_bundles(_dependencies(data))
        result.language = (
            "typescript" if (project_root / "tsconfig.json").exists() else "javascript"
        )
        if result.package_manager in (None, "uv", "poetry"):
            result.package_manager = "npm"
    elif (project_root / "pyproject.toml").exists() or (project_root / "setup.py").exists():
        result.detected = True
        result.project_type = "python"
        result.language = "python"
        if result.package_manager is None:
            result.package_manager = "pip"

    log.debug(
        "project_detected",
        path=str(project_root),
        detected=result.detected,
        project_type=result.project_type,
        package_manager=result.package_manager,
        suggested_bundles=result.suggested_bundles,
    )
    return result
