"""Header token parsing and schema inference."""

from .schema_parser import infer_schema, parse_header, parse_schema

__all__ = ["infer_schema", "parse_header", "parse_schema"]
