"""
Read-only catalog over a resolved namespace, shared by `mold list`,
`mold explain` and the HTTP surface.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from . import ast_nodes
from .logging_utils import redact_text, redact_vars
from .resolver import Namespace, ResolvedRecipe
from .runtime.engine import RecipeExecutor

NAME_WIDTH = 12


@dataclass
class RecipeSummary:
    name: str
    help: Optional[str] = None
    module: Optional[str] = None
    requires: List[str] = field(default_factory=list)


@dataclass
class CommandInfo:
    index: int
    command: str
    cwd: str


@dataclass
class RecipeExplanation:
    name: str
    help: Optional[str]
    module: Optional[str]
    requirements: Dict[str, bool] = field(default_factory=dict)
    commands: List[CommandInfo] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)


def declared_requirements(statements: List[ast_nodes.Statement]) -> List[str]:
    """Every `require` in a body, across all conditional branches."""
    names: List[str] = []
    for stmt in statements:
        if isinstance(stmt, ast_nodes.RequireStmt):
            if stmt.name not in names:
                names.append(stmt.name)
        elif isinstance(stmt, ast_nodes.IfStmt):
            for branch in stmt.branches:
                for name in declared_requirements(branch.body):
                    if name not in names:
                        names.append(name)
    return names


def summarize(qualified_name: str, recipe: ResolvedRecipe) -> RecipeSummary:
    ns = recipe.namespace
    return RecipeSummary(
        name=qualified_name,
        help=recipe.help,
        module=str(ns.path) if ns.path else None,
        requires=declared_requirements(recipe.decl.body),
    )


def list_recipes(namespace: Namespace) -> List[RecipeSummary]:
    return [summarize(name, recipe) for name, recipe in namespace.iter_recipes()]


def explain_recipe(
    namespace: Namespace,
    name: str,
    executor: Optional[RecipeExecutor] = None,
) -> RecipeExplanation:
    """Plan a recipe without running it and report what it would do."""
    executor = executor or RecipeExecutor()
    recipe = namespace.find(name)
    plan = executor.plan(recipe)
    requirements = {
        req: executor.capabilities.is_available(req, recipe.namespace)
        or executor.capabilities.is_available(req, namespace)
        for _, req in plan.requirements
    }
    scope = plan.scope
    variables: Dict[str, str] = scope.flatten(include_environ=False) if scope is not None else {}
    return RecipeExplanation(
        name=recipe.qualified_name,
        help=plan.help,
        module=str(recipe.namespace.path) if recipe.namespace.path else None,
        requirements=requirements,
        commands=[
            CommandInfo(index=cmd.index, command=redact_text(cmd.command, cmd.env), cwd=str(cmd.cwd))
            for cmd in plan.commands
        ],
        variables=redact_vars(variables),
    )


def format_listing(summaries: List[RecipeSummary]) -> str:
    lines: List[str] = []
    for summary in summaries:
        lines.append(f"{summary.name:>{NAME_WIDTH}} {summary.help or ''}".rstrip())
        if summary.requires:
            lines.append(f"{'':>{NAME_WIDTH}} requires: {' '.join(summary.requires)}")
    return "\n".join(lines)


def format_explanation(info: RecipeExplanation) -> str:
    lines = [f"{'recipe:':{NAME_WIDTH}} {info.name}"]
    if info.module:
        lines.append(f"{'from:':{NAME_WIDTH}} {info.module}")
    if info.help:
        lines.append(f"{'help:':{NAME_WIDTH}} {info.help}")
    if info.requirements:
        reqs = " ".join(name if ok else f"{name} (missing)" for name, ok in info.requirements.items())
        lines.append(f"{'requires:':{NAME_WIDTH}} {reqs}")
    if info.variables:
        lines.append("variables:")
        for key in sorted(info.variables):
            lines.append(f"  ${key:16} = {info.variables[key]}")
    for cmd in info.commands:
        lines.append(f"{'executes:':{NAME_WIDTH}} $ {cmd.command}")
        lines.append(f"{'in:':{NAME_WIDTH}} {cmd.cwd}")
    return "\n".join(lines)
