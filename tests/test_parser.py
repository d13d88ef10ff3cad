from __future__ import annotations

import pytest

from mold import ast_nodes
from mold.parser import ParseError, Parser, parse, parse_file, parse_source


def _guard(text: str) -> ast_nodes.Expr:
    document = parse_source(f"recipe r {{ if {text} {{ run \"x\" }} }}")
    if_stmt = document.recipes[0].body[0]
    return if_stmt.branches[0].guard


def test_parser_exports() -> None:
    assert Parser is not None
    assert callable(parse)
    assert callable(parse_source)
    assert ParseError is not None


def test_parse_document_statements():
    source = (
        'version "0.6.0"\n'
        'import "tools.mold" as tools\n'
        'import "common.mold"\n'
        'var mode := "debug"\n'
        'recipe build {\n'
        '  help "Build it"\n'
        '  dir "src"\n'
        '  require cc\n'
        '  require "tools:lint"\n'
        '  run "make"\n'
        '  $ "echo done"\n'
        '}\n'
    )
    document = parse_source(source, "moldfile")
    assert document.version == "0.6.0"
    assert document.path == "moldfile"
    assert [(imp.path, imp.alias) for imp in document.imports] == [("tools.mold", "tools"), ("common.mold", None)]
    var = document.statements[3]
    assert isinstance(var, ast_nodes.VarStmt)
    assert (var.name, var.value, var.is_default) == ("mode", "debug", True)
    recipe = document.recipes[0]
    assert recipe.name == "build"
    assert recipe.help == "Build it"
    kinds = [type(stmt).__name__ for stmt in recipe.body]
    assert kinds == ["HelpStmt", "DirStmt", "RequireStmt", "RequireStmt", "RunStmt", "RunStmt"]
    assert recipe.body[3].name == "tools:lint"
    assert recipe.body[5].command == "echo done"
    assert recipe.span.line == 5


def test_parse_if_elif_else_chain():
    document = parse_source(
        'recipe r {\n'
        '  if linux { run "a" } elif "*" { run "b" } else { run "c" }\n'
        '}\n'
    )
    stmt = document.recipes[0].body[0]
    assert isinstance(stmt, ast_nodes.IfStmt)
    assert len(stmt.branches) == 3
    assert isinstance(stmt.branches[1].guard, ast_nodes.WildcardExpr)
    assert stmt.branches[2].guard is None


def test_or_binds_looser_than_and():
    expr = _guard("a | b + c")
    assert isinstance(expr, ast_nodes.OrExpr)
    assert isinstance(expr.left, ast_nodes.NameExpr)
    assert isinstance(expr.right, ast_nodes.AndExpr)


def test_and_takes_whole_expression_on_the_right():
    expr = _guard("a + b | c")
    assert isinstance(expr, ast_nodes.AndExpr)
    assert expr.left.name == "a"
    assert isinstance(expr.right, ast_nodes.OrExpr)


def test_not_applies_to_single_atom():
    expr = _guard("~a + b")
    assert isinstance(expr, ast_nodes.AndExpr)
    assert isinstance(expr.left, ast_nodes.NotExpr)
    assert expr.left.inner.name == "a"


def test_chains_lean_right():
    expr = _guard("a + b + c")
    assert expr.left.name == "a"
    assert isinstance(expr.right, ast_nodes.AndExpr)
    assert expr.right.left.name == "b"


def test_group_and_string_atoms():
    expr = _guard('~("ci" | *)')
    assert isinstance(expr, ast_nodes.NotExpr)
    assert isinstance(expr.inner, ast_nodes.GroupExpr)
    inner = expr.inner.inner
    assert inner.left.name == "ci"
    assert isinstance(inner.right, ast_nodes.WildcardExpr)


def test_double_not_is_rejected():
    with pytest.raises(ParseError):
        _guard("~~a")


def test_top_level_if_may_hold_recipes_and_vars():
    document = parse_source('if ci { var mode = "release" recipe deploy { run "ship" } }')
    branch = document.statements[0].branches[0]
    assert [type(stmt).__name__ for stmt in branch.body] == ["VarStmt", "RecipeDecl"]


@pytest.mark.parametrize(
    "source",
    [
        'if ci { import "x.mold" }',
        'if ci { version "1.0.0" }',
    ],
)
def test_imports_and_version_only_at_top_level(source):
    with pytest.raises(ParseError) as excinfo:
        parse_source(source)
    assert "top level" in excinfo.value.message


def test_run_outside_recipe_is_rejected():
    with pytest.raises(ParseError) as excinfo:
        parse_source('run "make"')
    assert "only allowed inside a recipe" in excinfo.value.message


def test_recipe_inside_recipe_is_rejected():
    with pytest.raises(ParseError):
        parse_source("recipe a { recipe b { } }")


def test_duplicate_version_is_rejected():
    with pytest.raises(ParseError) as excinfo:
        parse_source('version "0.1.0"\nversion "0.2.0"')
    assert "Duplicate version" in excinfo.value.message
    assert excinfo.value.line == 2


def test_error_reports_location_and_expectation():
    with pytest.raises(ParseError) as excinfo:
        parse_source('recipe build {\n  run make\n}', "moldfile")
    err = excinfo.value
    assert (err.line, err.column) == (2, 7)
    assert err.path == "moldfile"
    assert err.expected == "string after 'run'"
    assert "moldfile" in str(err)


def test_unknown_top_level_word():
    with pytest.raises(ParseError) as excinfo:
        parse_source("task build { }")
    assert excinfo.value.expected.startswith("a top-level statement")


def test_missing_closing_brace():
    with pytest.raises(ParseError) as excinfo:
        parse_source('recipe build { run "x"')
    assert excinfo.value.expected == "'}'"


def test_alias_with_separator_is_rejected():
    with pytest.raises(ParseError):
        parse_source('import "x.mold" as a:b')


def test_var_requires_assignment_operator():
    with pytest.raises(ParseError) as excinfo:
        parse_source('var x "v"')
    assert excinfo.value.expected == "'=' or ':='"


def test_parse_file_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "moldfile"
    path.write_bytes(b'var a = "1"\nrecipe a { run "\xff" }')
    with pytest.raises(ParseError) as excinfo:
        parse_file(path)
    assert excinfo.value.path == str(path)
    assert (excinfo.value.line, excinfo.value.column) == (2, 17)
    assert "byte 28" in excinfo.value.message


def test_parse_file_accepts_crlf(tmp_path):
    path = tmp_path / "moldfile"
    path.write_bytes(b'recipe a {\r\n  run "x"\r\n}\r\n')
    document = parse_file(path)
    assert document.recipes[0].body[0].command == "x"
    assert document.recipes[0].end.line == 3
