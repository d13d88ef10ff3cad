from pathlib import Path

from mold.catalog import declared_requirements, explain_recipe, format_explanation, format_listing, list_recipes
from mold.logging_utils import REDACTED
from mold.resolver import load_namespace
from mold.runtime.capabilities import Capabilities
from mold.runtime.engine import RecipeExecutor
from mold.scope import Scope

MOLDFILE = (
    'import "tools.mold" as tools\n'
    'var API_TOKEN = "hunter22"\n'
    'recipe build {\n'
    '  help "Compile everything"\n'
    '  require cc\n'
    '  if release { require strip } else { dir "debug" }\n'
    '  run "make"\n'
    '}\n'
    'recipe publish { run "upload --token ${API_TOKEN}" }\n'
)


def _namespace(tmp_path: Path):
    (tmp_path / "tools.mold").write_text('recipe lint { help "Run linters" run "ruff ." }', encoding="utf-8")
    path = tmp_path / "moldfile"
    path.write_text(MOLDFILE, encoding="utf-8")
    return load_namespace(path, Scope(environ={"PATH": "/usr/bin:/bin"}))


def test_list_recipes_collects_requirements_from_all_branches(tmp_path):
    summaries = list_recipes(_namespace(tmp_path))
    assert [s.name for s in summaries] == ["build", "publish", "tools:lint"]
    build = summaries[0]
    assert build.help == "Compile everything"
    assert build.requires == ["cc", "strip"]
    assert summaries[2].module == str((tmp_path / "tools.mold").resolve())


def test_format_listing(tmp_path):
    output = format_listing(list_recipes(_namespace(tmp_path)))
    lines = output.splitlines()
    assert lines[0].strip() == "build Compile everything"
    assert lines[1].strip() == "requires: cc strip"
    assert any(line.strip() == "tools:lint Run linters" for line in lines)


def test_explain_recipe_plans_without_running(tmp_path):
    ns = _namespace(tmp_path)
    executor = RecipeExecutor(Capabilities(which=lambda name, path=None: None))
    info = explain_recipe(ns, "build", executor)
    assert info.name == "build"
    assert info.requirements == {"cc": False}
    assert [cmd.command for cmd in info.commands] == ["make"]
    assert info.commands[0].cwd == str((tmp_path / "debug").resolve())
    assert info.variables["API_TOKEN"] == REDACTED
    text = format_explanation(info)
    assert "cc (missing)" in text
    assert "$ make" in text


def test_explain_redacts_interpolated_secrets(tmp_path):
    info = explain_recipe(_namespace(tmp_path), "publish")
    assert info.commands[0].command == f"upload --token {REDACTED}"


def test_declared_requirements_deduplicates():
    from mold.parser import parse_source

    body = parse_source('recipe r { require a if x { require a require b } }').recipes[0].body
    assert declared_requirements(body) == ["a", "b"]
