"""Render de resultados a texto estructurado.

Por qué un registro de renderers:
- El formato de salida es una decisión de presentación; el dispatcher
  devuelve siempre el resultado crudo y el borde (CLI) elige el render.
- Todos los renderers preservan todos los campos del resultado.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import yaml


class OutputFormat(str, Enum):
    JSON = "json"
    YAML = "yaml"


def render_json(value: Any) -> str:
    """JSON UTF-8 con formato estable."""

    return json.dumps(value, ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def render_yaml(value: Any) -> str:
    return yaml.safe_dump(value, allow_unicode=True, sort_keys=True, default_flow_style=False)


RENDERERS: dict[OutputFormat, Callable[[Any], str]] = {
    OutputFormat.JSON: render_json,
    OutputFormat.YAML: render_yaml,
}


def render(value: Any, fmt: OutputFormat | str = OutputFormat.JSON) -> str:
    return RENDERERS[OutputFormat(fmt)](value)


def export_result(*, value: Any, output_path: Path, fmt: OutputFormat | str = OutputFormat.JSON) -> Path:
    """Escribe el resultado renderizado en disco (crea el directorio si falta)."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render(value, fmt), encoding="utf-8")
    return output_path
