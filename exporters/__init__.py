"""Exporters for converting graph views to various output formats."""

from .mermaid_exporter import to_mermaid
from .json_exporter import to_json, node_id

__all__ = ["to_mermaid", "to_json", "node_id"]
