"""Statement parsing helpers attached to `Parser` as methods.

Two contexts share the conditional-block grammar: the document body
(`version`, `import`, `recipe`, `var`, `dir`, `help`, `if`) and the recipe
body (`help`, `dir`, `require`, `run`/`$`, `var`, `if`). A conditional block
nested at document level accepts the document statements except `version` and
`import`.
"""

from __future__ import annotations

from .. import ast_nodes

__all__ = [
    "parse_document",
    "parse_document_statement",
    "parse_recipe_statement",
    "parse_block",
    "parse_if",
    "parse_branch",
    "parse_version",
    "parse_import",
    "parse_recipe",
    "parse_var",
    "parse_dir",
    "parse_help",
    "parse_require",
    "parse_run",
]

DOCUMENT = "document"
DOCUMENT_BLOCK = "document-block"
RECIPE = "recipe"

_DOCUMENT_KEYWORDS = {"version", "import", "recipe", "var", "dir", "help", "if"}
_RECIPE_KEYWORDS = {"help", "dir", "require", "run", "var", "if"}


def parse_document(self) -> ast_nodes.Document:
    document = ast_nodes.Document(path=self.filename)
    while not self.check("EOF"):
        stmt = self.parse_document_statement(DOCUMENT)
        if isinstance(stmt, ast_nodes.VersionDecl):
            if document.version is not None:
                raise self.error(
                    f"Duplicate version specified: {stmt.version}",
                    self.previous(),
                )
            document.version = stmt.version
        document.statements.append(stmt)
    document.comments = [
        ast_nodes.Comment(text=token.value or "", span=self._span(token)) for token in self.comments
    ]
    return document


def parse_document_statement(self, context: str = DOCUMENT) -> ast_nodes.Statement:
    token = self.peek()
    if token.type != "KEYWORD" or token.value not in _DOCUMENT_KEYWORDS:
        if token.type == "KEYWORD" and token.value in {"require", "run"}:
            raise self.error(f"'{token.value}' is only allowed inside a recipe", token)
        if token.type == "DOLLAR":
            raise self.error("'$' is only allowed inside a recipe", token)
        if token.type == "KEYWORD" and token.value in {"elif", "else"}:
            raise self.error(f"'{token.value}' without a preceding 'if' block", token)
        raise self.expected("a top-level statement (version, import, recipe, var, if)", token)

    if context == DOCUMENT_BLOCK and token.value in {"version", "import"}:
        raise self.error(f"'{token.value}' is only allowed at the top level of a moldfile", token)

    if token.value == "version":
        return self.parse_version()
    if token.value == "import":
        return self.parse_import()
    if token.value == "recipe":
        return self.parse_recipe()
    if token.value == "var":
        return self.parse_var()
    if token.value == "dir":
        return self.parse_dir()
    if token.value == "help":
        return self.parse_help()
    return self.parse_if(DOCUMENT_BLOCK)


def parse_recipe_statement(self) -> ast_nodes.Statement:
    token = self.peek()
    if token.type == "DOLLAR":
        return self.parse_run()
    if token.type != "KEYWORD" or token.value not in _RECIPE_KEYWORDS:
        if token.type == "KEYWORD" and token.value in {"import", "version", "recipe"}:
            raise self.error(f"'{token.value}' is not allowed inside a recipe", token)
        if token.type == "KEYWORD" and token.value in {"elif", "else"}:
            raise self.error(f"'{token.value}' without a preceding 'if' block", token)
        raise self.expected("a recipe statement (help, dir, require, run, $, var, if)", token)
    if token.value == "help":
        return self.parse_help()
    if token.value == "dir":
        return self.parse_dir()
    if token.value == "require":
        return self.parse_require()
    if token.value == "run":
        return self.parse_run()
    if token.value == "var":
        return self.parse_var()
    return self.parse_if(RECIPE)


def parse_block(self, context: str) -> list[ast_nodes.Statement]:
    self.consume("LBRACE", expected="'{'")
    body: list[ast_nodes.Statement] = []
    while not self.check("RBRACE"):
        if self.check("EOF"):
            raise self.expected("'}'", self.peek())
        if context == RECIPE:
            body.append(self.parse_recipe_statement())
        else:
            body.append(self.parse_document_statement(DOCUMENT_BLOCK))
    self.consume("RBRACE", expected="'}'")
    return body


def parse_if(self, context: str) -> ast_nodes.IfStmt:
    start = self.consume("KEYWORD", "if")
    stmt = ast_nodes.IfStmt(span=self._span(start))
    stmt.branches.append(self.parse_branch(start, self.parse_expression(), context))
    while self.check_value("KEYWORD", "elif"):
        tok = self.advance()
        stmt.branches.append(self.parse_branch(tok, self.parse_expression(), context))
    if self.check_value("KEYWORD", "else"):
        tok = self.advance()
        stmt.branches.append(self.parse_branch(tok, None, context))
    return stmt


def parse_branch(self, head, guard, context: str) -> ast_nodes.IfBranch:
    body = self.parse_block(context)
    return ast_nodes.IfBranch(guard=guard, body=body, span=self._span(head), end=self._span(self.previous()))


def parse_version(self) -> ast_nodes.VersionDecl:
    start = self.consume("KEYWORD", "version")
    value = self.consume_string_value("version")
    return ast_nodes.VersionDecl(version=value.value or "", span=self._span(start))


def parse_import(self) -> ast_nodes.ImportDecl:
    start = self.consume("KEYWORD", "import")
    path = self.consume_string_value("import")
    alias = None
    if self.match_value("KEYWORD", "as"):
        alias = self.consume_name("import alias").value
        if ":" in (alias or ""):
            raise self.error(f"Import alias '{alias}' may not contain ':'", self.previous())
    return ast_nodes.ImportDecl(path=path.value or "", alias=alias, span=self._span(start))


def parse_recipe(self) -> ast_nodes.RecipeDecl:
    start = self.consume("KEYWORD", "recipe")
    name = self.consume_name("recipe name")
    body = self.parse_block(RECIPE)
    return ast_nodes.RecipeDecl(
        name=name.value or "",
        body=body,
        span=self._span(start),
        end=self._span(self.previous()),
    )


def parse_var(self) -> ast_nodes.VarStmt:
    start = self.consume("KEYWORD", "var")
    name = self.consume_name("variable name")
    if self.match("DEFAULT"):
        is_default = True
    elif self.match("EQUALS"):
        is_default = False
    else:
        raise self.expected("'=' or ':='", self.peek())
    value = self.consume_string_value(f"var {name.value}")
    return ast_nodes.VarStmt(
        name=name.value or "",
        value=value.value or "",
        is_default=is_default,
        span=self._span(start),
    )


def parse_dir(self) -> ast_nodes.DirStmt:
    start = self.consume("KEYWORD", "dir")
    value = self.consume_string_value("dir")
    return ast_nodes.DirStmt(path=value.value or "", span=self._span(start))


def parse_help(self) -> ast_nodes.HelpStmt:
    start = self.consume("KEYWORD", "help")
    value = self.consume_string_value("help")
    return ast_nodes.HelpStmt(text=value.value or "", span=self._span(start))


def parse_require(self) -> ast_nodes.RequireStmt:
    start = self.consume("KEYWORD", "require")
    if self.check("STRING"):
        token = self.advance()
        if not token.value:
            raise self.error("Empty requirement name", token)
    else:
        token = self.consume_name("requirement name")
    return ast_nodes.RequireStmt(name=token.value or "", span=self._span(start))


def parse_run(self) -> ast_nodes.RunStmt:
    start = self.peek()
    if not self.match("DOLLAR"):
        self.consume("KEYWORD", "run")
    value = self.consume_string_value("run")
    return ast_nodes.RunStmt(command=value.value or "", span=self._span(start))
