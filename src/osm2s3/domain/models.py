"""
Pipeline Domain Models

Pydantic models for type safety and validation across the pipeline.
These models ensure data integrity and provide clear interfaces.
"""

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config.settings import ConfigurationError

LAYER_SUFFIX = "_trs_roads_osm"
DB_FIELDS = ("host", "user", "password", "name", "port", "schema")

# Table names, schema and ISO3 codes are interpolated into the ogr2ogr SQL
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
ISO3_PATTERN = re.compile(r"^[A-Za-z]{3}$")


def layer_name_for(iso3_code: str) -> str:
    """Derive the layer name used for export, directory, archive and upload key."""
    return f"{iso3_code.lower()}{LAYER_SUFFIX}"


class ConnectionDescriptor(BaseModel):
    """PostgreSQL connection in ogr2ogr's ``PG:`` form plus the source schema."""
    connection_string: str = Field(..., repr=False, description="ogr2ogr PG: connection string")
    redacted_string: str = Field(..., description="Connection string with the password masked")
    schema_name: str = Field(..., description="Schema qualifying the exported tables")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "ConnectionDescriptor":
        """
        Build a descriptor from the raw ``[connection]`` section.

        Args:
            params: Mapping with host, user, password, name, port and schema

        Returns:
            Immutable ConnectionDescriptor

        Raises:
            ConfigurationError: If any field is missing or has the wrong type
        """
        if not isinstance(params, Mapping):
            raise ConfigurationError("Failed parsing database params: [connection] must be a table")

        values = {}
        for name in DB_FIELDS:
            value = params.get(name)
            if name == "port" and isinstance(value, int) and not isinstance(value, bool):
                value = str(value)
            if not isinstance(value, str):
                raise ConfigurationError(f"Failed parsing database params {name}")
            values[name] = value

        if not IDENTIFIER_PATTERN.match(values["schema"]):
            raise ConfigurationError(f"Invalid schema name: {values['schema']!r}")

        template = "PG:dbname='{name}' host='{host}' port={port} user='{user}' password='{password}'"
        return cls(
            connection_string=template.format(**values),
            redacted_string=template.format(**{**values, "password": "***"}),
            schema_name=values["schema"],
        )


class JobConfig(BaseModel):
    """Tables to export, keyed by table name, and the source database connection."""
    tables: dict[str, list[str]] = Field(..., description="Table name -> ordered ISO3 codes")
    connection: ConnectionDescriptor = Field(..., description="Source database connection")

    model_config = ConfigDict(frozen=True)

    @field_validator("tables")
    @classmethod
    def _check_tables(cls, tables: dict[str, list[str]]) -> dict[str, list[str]]:
        for table_name, codes in tables.items():
            if not IDENTIFIER_PATTERN.match(table_name):
                raise ValueError(f"invalid table name {table_name!r}")
            for code in codes:
                if not ISO3_PATTERN.match(code):
                    raise ValueError(f"invalid ISO3 code {code!r} for table {table_name!r}")
        return tables

    @field_validator("connection", mode="before")
    @classmethod
    def _build_connection(cls, value: Any) -> Any:
        if isinstance(value, ConnectionDescriptor):
            return value
        return ConnectionDescriptor.from_mapping(value)


class TableJob(BaseModel):
    """One export/archive/upload unit of work for a table and country code."""
    table_name: str
    iso3_code: str
    layer_name: str
    output_dir: Path
    archive_path: Path

    model_config = ConfigDict(frozen=True)

    @classmethod
    def plan(cls, table_name: str, iso3_code: str, work_dir: Path) -> "TableJob":
        layer = layer_name_for(iso3_code)
        return cls(
            table_name=table_name,
            iso3_code=iso3_code,
            layer_name=layer,
            output_dir=work_dir / layer,
            archive_path=work_dir / f"{layer}.zip",
        )

    def filter_query(self, schema: str) -> str:
        """SQL passed to ogr2ogr selecting this job's country rows."""
        return f"SELECT * FROM {schema}.{self.table_name} WHERE iso3 = '{self.iso3_code}'"
