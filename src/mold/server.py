"""
FastAPI surface for browsing a moldfile: read-only, nothing is executed.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .catalog import explain_recipe, list_recipes
from .config import load_config
from .discovery import discover
from .environments import invocation_scope
from .errors import MoldError, UnknownRecipeError
from .lang.formatter import render_document
from .parser import parse_file
from .resolver import Namespace, load_namespace
from .version import __version__

logger = logging.getLogger("mold.server")


class RecipeSummaryModel(BaseModel):
    name: str
    help: Optional[str] = None
    module: Optional[str] = None
    requires: List[str] = Field(default_factory=list)


class CommandModel(BaseModel):
    index: int
    command: str
    cwd: str


class RecipeDetailModel(BaseModel):
    name: str
    help: Optional[str] = None
    module: Optional[str] = None
    requirements: Dict[str, bool] = Field(default_factory=dict)
    commands: List[CommandModel] = Field(default_factory=list)
    variables: Dict[str, str] = Field(default_factory=dict)


class HealthModel(BaseModel):
    status: str = "ok"
    version: str = __version__
    moldfile: Optional[str] = None


def _error_detail(exc: MoldError) -> Dict[str, Any]:
    return {
        "message": exc.message,
        "path": exc.path,
        "line": exc.line,
        "column": exc.column,
        "kind": type(exc).__name__,
    }


def create_app(moldfile: Path | str | None = None, project_root: Path | None = None) -> FastAPI:
    """Create the FastAPI app. The moldfile is reloaded on every request."""

    project_root = (project_root or Path.cwd()).resolve()
    config = load_config(project_root=project_root)
    requested = moldfile or config.moldfile
    app = FastAPI(title="mold", version=__version__)

    def _moldfile() -> Path:
        try:
            return discover(project_root, requested)
        except MoldError as exc:
            raise HTTPException(status_code=422, detail=_error_detail(exc)) from exc

    def _namespace() -> Namespace:
        path = _moldfile()
        try:
            return load_namespace(path, invocation_scope(config.environments))
        except MoldError as exc:
            logger.info("failed to load %s: %s", path, exc)
            raise HTTPException(status_code=422, detail=_error_detail(exc)) from exc

    @app.get("/health", response_model=HealthModel)
    def health() -> HealthModel:
        found: Optional[str] = None
        try:
            found = str(discover(project_root, requested))
        except MoldError:
            found = None
        return HealthModel(moldfile=found)

    @app.get("/api/recipes", response_model=List[RecipeSummaryModel])
    def api_recipes() -> List[RecipeSummaryModel]:
        return [RecipeSummaryModel(**asdict(summary)) for summary in list_recipes(_namespace())]

    @app.get("/api/recipes/{name:path}", response_model=RecipeDetailModel)
    def api_recipe(name: str) -> RecipeDetailModel:
        namespace = _namespace()
        try:
            info = explain_recipe(namespace, name)
        except UnknownRecipeError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        except MoldError as exc:
            raise HTTPException(status_code=422, detail=_error_detail(exc)) from exc
        return RecipeDetailModel(**asdict(info))

    @app.get("/api/document")
    def api_document() -> Dict[str, Any]:
        path = _moldfile()
        try:
            document = parse_file(path)
        except MoldError as exc:
            raise HTTPException(status_code=422, detail=_error_detail(exc)) from exc
        return {"path": str(path), "version": document.version, "source": render_document(document)}

    return app
