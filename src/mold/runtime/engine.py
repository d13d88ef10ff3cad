"""
Recipe execution engine.

Execution of one recipe happens in three passes:

1. plan: walk the body with a fresh recipe scope, applying `var` statements
   and selecting conditional branches as they are reached; every `run` is
   interpolated and bound to the working directory and environment in force
   at that point;
2. pre-flight: every `require` of the plan is checked, before any command;
3. run: planned commands execute one at a time; the first failure aborts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .. import ast_nodes
from ..errors import (
    CommandCancelledError,
    CommandFailedError,
    CommandTimeoutError,
    MissingRequirementError,
)
from ..logging_utils import redact_text
from ..resolver import Namespace, ResolvedRecipe
from ..scope import Scope
from .capabilities import Capabilities
from .expressions import iter_flattened
from .process import CancelToken, ProcessRunner

logger = logging.getLogger("mold.engine")


@dataclass
class PlannedCommand:
    index: int
    command: str
    cwd: Path
    env: Dict[str, str] = field(repr=False, default_factory=dict)


@dataclass
class ExecutionPlan:
    recipe: ResolvedRecipe
    statements: List[ast_nodes.Statement] = field(default_factory=list)
    requirements: List[Tuple[int, str]] = field(default_factory=list)
    commands: List[PlannedCommand] = field(default_factory=list)
    scope: Optional[Scope] = None

    @property
    def help(self) -> Optional[str]:
        text = None
        for stmt in self.statements:
            if isinstance(stmt, ast_nodes.HelpStmt):
                text = stmt.text
        return text

    @property
    def work_dir(self) -> Optional[Path]:
        return self.commands[-1].cwd if self.commands else None


@dataclass
class CommandRecord:
    index: int
    command: str
    cwd: Path
    exit_status: int


@dataclass
class ExecutionResult:
    recipe: str
    plan: ExecutionPlan
    commands: List[CommandRecord] = field(default_factory=list)
    dry_run: bool = False


def module_directory(namespace: Namespace, scope: Scope) -> Path:
    """Default working directory for recipes of `namespace`."""
    if namespace.work_dir:
        return (namespace.directory / Path(scope.interpolate(namespace.work_dir)).expanduser()).resolve()
    return namespace.directory


class RecipeExecutor:
    def __init__(
        self,
        capabilities: Optional[Capabilities] = None,
        runner: Optional[ProcessRunner] = None,
    ) -> None:
        self.capabilities = capabilities or Capabilities()
        self.runner = runner or ProcessRunner()

    def plan(
        self,
        recipe: ResolvedRecipe,
        base_scope: Optional[Scope] = None,
        args: Optional[Mapping[str, str]] = None,
    ) -> ExecutionPlan:
        home = recipe.namespace
        base = base_scope if base_scope is not None else home.scope
        scope = base.child(args, name="arguments").child(name=f"recipe:{recipe.qualified_name}")
        plan = ExecutionPlan(recipe=recipe, scope=scope)
        cwd = module_directory(home, scope)

        for index, stmt in enumerate(iter_flattened(recipe.decl.body, scope)):
            plan.statements.append(stmt)
            if isinstance(stmt, ast_nodes.DirStmt):
                cwd = (home.directory / Path(scope.interpolate(stmt.path)).expanduser()).resolve()
            elif isinstance(stmt, ast_nodes.RequireStmt):
                plan.requirements.append((index, stmt.name))
            elif isinstance(stmt, ast_nodes.RunStmt):
                plan.commands.append(
                    PlannedCommand(
                        index=index,
                        command=scope.interpolate(stmt.command),
                        cwd=cwd,
                        env=scope.flatten(),
                    )
                )
        logger.debug(
            "planned %s: %d statement(s), %d command(s)",
            recipe.qualified_name,
            len(plan.statements),
            len(plan.commands),
        )
        return plan

    def check_requirements(self, plan: ExecutionPlan, namespace: Optional[Namespace] = None) -> None:
        for _, name in plan.requirements:
            if self.capabilities.is_available(name, plan.recipe.namespace):
                continue
            if namespace is None or not self.capabilities.is_available(name, namespace):
                raise MissingRequirementError(
                    f"Recipe '{plan.recipe.qualified_name}' requires '{name}', which is not available",
                    recipe=plan.recipe.qualified_name,
                    requirement=name,
                )

    def execute(
        self,
        recipe: ResolvedRecipe,
        namespace: Optional[Namespace] = None,
        base_scope: Optional[Scope] = None,
        args: Optional[Mapping[str, str]] = None,
        cancel: Optional[CancelToken] = None,
        deadline: Optional[float] = None,
        dry_run: bool = False,
    ) -> ExecutionResult:
        plan = self.plan(recipe, base_scope, args)
        self.check_requirements(plan, namespace)
        result = ExecutionResult(recipe=recipe.qualified_name, plan=plan, dry_run=dry_run)
        if dry_run:
            return result

        for planned in plan.commands:
            logger.info("%s: $ %s", recipe.qualified_name, redact_text(planned.command, planned.env))
            try:
                status = self.runner.run(planned.command, planned.cwd, planned.env, cancel=cancel, deadline=deadline)
            except (CommandCancelledError, CommandTimeoutError) as exc:
                exc.recipe = recipe.qualified_name
                exc.statement_index = planned.index
                raise
            except OSError as exc:
                raise CommandFailedError(
                    f"Recipe '{recipe.qualified_name}' could not start '{planned.command}': {exc}",
                    recipe=recipe.qualified_name,
                    statement_index=planned.index,
                    exit_status=127,
                    command=planned.command,
                ) from exc
            result.commands.append(
                CommandRecord(index=planned.index, command=planned.command, cwd=planned.cwd, exit_status=status)
            )
            if status != 0:
                raise CommandFailedError(
                    f"Recipe '{recipe.qualified_name}' failed at statement {planned.index} with exit status {status}",
                    recipe=recipe.qualified_name,
                    statement_index=planned.index,
                    exit_status=status,
                    command=planned.command,
                )
        return result


def execute(
    recipe: ResolvedRecipe,
    namespace: Optional[Namespace] = None,
    base_scope: Optional[Scope] = None,
    args: Optional[Mapping[str, str]] = None,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> ExecutionResult:
    return RecipeExecutor().execute(recipe, namespace, base_scope, args, cancel=cancel, deadline=deadline)


def run_recipes(
    namespace: Namespace,
    names: Sequence[str],
    args: Optional[Mapping[str, str]] = None,
    executor: Optional[RecipeExecutor] = None,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> List[ExecutionResult]:
    """Run recipes in order; the first failure propagates and stops the rest."""
    executor = executor or RecipeExecutor()
    results: List[ExecutionResult] = []
    for name in names:
        recipe = namespace.find(name)
        results.append(executor.execute(recipe, namespace, args=args, cancel=cancel, deadline=deadline))
    return results


def run_recipe(
    namespace: Namespace,
    name: str,
    args: Optional[Mapping[str, str]] = None,
    executor: Optional[RecipeExecutor] = None,
    cancel: Optional[CancelToken] = None,
    deadline: Optional[float] = None,
) -> ExecutionResult:
    """Look up a (possibly alias-qualified) recipe name and execute it."""
    executor = executor or RecipeExecutor()
    return executor.execute(namespace.find(name), namespace, args=args, cancel=cancel, deadline=deadline)
