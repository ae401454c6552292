#!/usr/bin/env python3
"""Validate garage YAML files against the schema."""
import sys
from pathlib import Path
from typing import List

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_garage_file(filepath: Path, schema: dict) -> List[str]:
    """Validate a single garage YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv: List[str] = None) -> int:
    """Validate the given garage files, or every YAML file in data/."""
    schema = load_schema()
    argv = sys.argv[1:] if argv is None else argv

    if argv:
        yaml_files = [Path(p) for p in argv]
    else:
        data_dir = Path(__file__).parent / "data"
        if not data_dir.exists():
            print(f"Error: data directory not found: {data_dir}")
            return 1
        yaml_files = sorted(
            list(data_dir.glob("*.yaml")) + list(data_dir.glob("*.yml"))
        )
        if not yaml_files:
            print(f"Warning: No YAML files found in {data_dir}")
            return 0

    all_valid = True
    for filepath in yaml_files:
        errors = validate_garage_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
