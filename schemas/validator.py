"""
Column checks for the CSV files read and written by the schedule CLI.

A file passes when every schema field is present as a column whose pandas
dtype can hold the field's type. Row values are not validated here; the
loader converts and checks them as it builds the network.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple, Type

import pandas as pd
from pydantic import BaseModel

# pandas dtype kind -> python field types it can carry. CSV inference is
# loose: a numeric column with blanks is float, numeric ids come back as int.
COMPATIBLE_KINDS: Dict[str, Tuple[str, ...]] = {
    'int': ('int', 'float', 'str'),
    'float': ('float', 'int', 'str'),
    'str': ('str',),
    'bool': ('bool',),
}


class SchemaValidationError(Exception):
    """A DataFrame does not match its schema."""

    def __init__(
        self,
        message: str,
        missing_columns: Optional[List[str]] = None,
        type_mismatches: Optional[Dict[str, Tuple[str, str]]] = None,
    ):
        super().__init__(message)
        self.missing_columns = missing_columns or []
        self.type_mismatches = type_mismatches or {}


def pandas_dtype_to_python_type(dtype) -> str:
    """Collapse a pandas dtype to int, float, str, bool (or its own name)."""
    name = str(dtype)
    if name.lower().startswith('int'):
        return 'int'
    if name.startswith('float'):
        return 'float'
    if name in ('object', 'string', 'str'):
        return 'str'
    if name in ('bool', 'boolean'):
        return 'bool'
    return name


def annotation_kind(annotation) -> str:
    """Collapse a field annotation to bool, int, float or str."""
    text = str(annotation).lower()
    return next((kind for kind in ('bool', 'int', 'float', 'str') if kind in text), text)


def types_compatible(pandas_type: str, pydantic_type: str) -> bool:
    return pydantic_type in COMPATIBLE_KINDS.get(pandas_type, (pandas_type,))


def validate_dataframe(
    df: pd.DataFrame,
    schema: Type[BaseModel],
    strict: bool = False,
) -> List[str]:
    """
    Check a DataFrame's columns against a schema.

    Args:
        df: Table to check
        schema: Pydantic model whose fields are the required columns
        strict: Also report columns the schema does not name

    Returns:
        Error messages, empty when the table conforms
    """
    fields = schema.model_fields
    errors = []

    missing = sorted(set(fields) - set(df.columns))
    if missing:
        errors.append(f"Missing required columns: {missing}")

    if strict:
        extra = sorted(set(df.columns) - set(fields))
        if extra:
            errors.append(f"Unexpected columns (strict mode): {extra}")

    mismatches = _type_mismatches(df, schema)
    if mismatches:
        detail = '; '.join(f"{col}: got {got}, expected {want}" for col, (got, want) in mismatches.items())
        errors.append(f"Type mismatches: {detail}")

    return errors


def _type_mismatches(df: pd.DataFrame, schema: Type[BaseModel]) -> Dict[str, Tuple[str, str]]:
    mismatches = {}
    for col, field in schema.model_fields.items():
        if col not in df.columns:
            continue
        got = pandas_dtype_to_python_type(df[col].dtype)
        want = annotation_kind(field.annotation)
        if not types_compatible(got, want):
            mismatches[col] = (got, want)
    return mismatches


def _raise_if_invalid(df: pd.DataFrame, schema: Type[BaseModel], name: str, strict: bool = False) -> None:
    errors = validate_dataframe(df, schema, strict=strict)
    if errors:
        raise SchemaValidationError(
            f"'{name}' does not match {schema.__name__}:\n" + "\n".join(f"  - {e}" for e in errors),
            missing_columns=sorted(set(schema.model_fields) - set(df.columns)),
            type_mismatches=_type_mismatches(df, schema),
        )


def validate_input_file(
    file_path: Path,
    schema: Optional[Type[BaseModel]] = None,
) -> pd.DataFrame:
    """
    Read a CSV and check it against its schema.

    Args:
        file_path: CSV to read
        schema: Schema to check against (default: registry lookup by file
            name; unregistered files are returned unchecked)

    Raises:
        FileNotFoundError: No such file
        SchemaValidationError: Columns missing or mistyped
    """
    from .registry import get_schema_for_file

    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    df = pd.read_csv(file_path)
    schema = schema or get_schema_for_file(file_path.name)
    if schema is not None:
        _raise_if_invalid(df, schema, file_path.name)
    return df


def validated_df_to_csv(
    df: pd.DataFrame,
    file_path: Path,
    schema: Optional[Type[BaseModel]] = None,
    strict: bool = False,
    **to_csv_kwargs,
) -> None:
    """
    Check a DataFrame against its schema, then write it with ``df.to_csv``.

    Raises:
        KeyError: No schema given and none registered for the file name
        SchemaValidationError: The table does not conform
    """
    from .registry import get_schema_for_file

    file_path = Path(file_path)
    schema = schema or get_schema_for_file(file_path.name)
    if schema is None:
        raise KeyError(f"No schema registered for '{file_path.name}'")

    _raise_if_invalid(df, schema, file_path.name, strict=strict)
    df.to_csv(file_path, **to_csv_kwargs)
