from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import docstring_parser as parser

from beam_ensemble.config.external import UserEnsembleConfig

if TYPE_CHECKING:
    from pydantic import BaseModel


SCHEMA_PATH = Path(__file__).parent.parent / "config-schema.json"


def populate_field_description(model_cls: type[BaseModel]) -> type[BaseModel]:
    """Populate field descriptions of a Pydantic model from the `Attributes` of its docstring."""
    model_doc = parser.parse(model_cls.__doc__ or "")
    name_to_description = {prop.arg_name: prop.description for prop in model_doc.params}

    for field_name, field_info in model_cls.model_fields.items():
        field_info.description = name_to_description.get(field_name, "")
        print(f"Described {model_cls.__name__}.{field_name} as:\n'{field_info.description}'")

    model_cls.model_rebuild(force=True)

    return model_cls


def dump_schema(schema: dict, path: Path) -> None:
    with path.open("w") as f:
        json.dump(schema, f, indent=2)


if __name__ == "__main__":
    print("Generating configuration schema...")
    model_cls = populate_field_description(UserEnsembleConfig)
    schema = model_cls.model_json_schema()
    dump_schema(schema, SCHEMA_PATH)
    print(f"Schema saved to {SCHEMA_PATH}")
