"""
Table metadata for the Red List primate tables.

The tables defined here are the only identifiers the upsert builder will
place into SQL text. Each table carries a unique constraint over its
conflict key so ``ON CONFLICT (...)`` has an index to target.
"""

from typing import Dict, List, Tuple

from sqlalchemy import (
    Boolean, Column, Integer, MetaData, Table, Text, UniqueConstraint,
)

metadata = MetaData()

species_table = Table(
    "species",
    metadata,
    Column("name", Text, nullable=False),
    Column("family", Text),
    Column("genus", Text),
    Column("category", Text),
    Column("common_name", Text),
    Column("published_year", Integer),
    Column("assessment_date", Text),
    Column("criteria", Text),
    Column("population_trend", Text),
    Column("marine_system", Boolean),
    Column("freshwater_system", Boolean),
    Column("terrestrial_system", Boolean),
    Column("citation", Text),
    UniqueConstraint("name", name="species_name_key"),
)

threats_table = Table(
    "threats",
    metadata,
    Column("name", Text, nullable=False),
    Column("code", Text, nullable=False),
    Column("title", Text),
    Column("timing", Text),
    Column("score", Text),
    UniqueConstraint("name", "code", name="threats_name_code_key"),
)

conservation_measures_table = Table(
    "conservation_measures",
    metadata,
    Column("name", Text, nullable=False),
    Column("code", Text, nullable=False),
    Column("title", Text),
    UniqueConstraint("name", "code", name="conservation_measures_name_code_key"),
)

assessments_table = Table(
    "assessments",
    metadata,
    Column("name", Text, nullable=False),
    Column("year", Integer),
    Column("code", Text, nullable=False),
    Column("category", Text),
    UniqueConstraint("name", "code", name="assessments_name_code_key"),
)

countries_table = Table(
    "countries",
    metadata,
    Column("name", Text, nullable=False),
    Column("country", Text, nullable=False),
    Column("presence", Text),
    Column("origin", Text),
    UniqueConstraint("name", "country", name="countries_name_country_key"),
)

habitats_table = Table(
    "habitats",
    metadata,
    Column("name", Text, nullable=False),
    Column("code", Text, nullable=False),
    Column("habitat", Text),
    UniqueConstraint("name", "code", name="habitats_name_code_key"),
)

descriptions_table = Table(
    "descriptions",
    metadata,
    Column("name", Text, nullable=False),
    Column("taxonomicnotes", Text),
    Column("rationale", Text),
    Column("geographicrange", Text),
    Column("population", Text),
    Column("habitat", Text),
    Column("threats", Text),
    Column("conservationmeasures", Text),
    Column("usetrade", Text),
    UniqueConstraint("name", name="descriptions_name_key"),
)

# Conflict target used by each table's upsert
CONFLICT_KEYS: Dict[str, Tuple[str, ...]] = {
    "species": ("name",),
    "threats": ("name", "code"),
    "conservation_measures": ("name", "code"),
    "assessments": ("name", "code"),
    "countries": ("name", "country"),
    "habitats": ("name", "code"),
    "descriptions": ("name",),
}


def get_table(table_name: str) -> Table:
    """
    Look up a known table by name.

    Raises:
        ValueError: If the table is not part of the schema
    """
    try:
        return metadata.tables[table_name]
    except KeyError:
        raise ValueError(f"Unknown table: {table_name!r}") from None


def column_names(table_name: str) -> List[str]:
    """Return the table's column names in declaration order."""
    return [column.name for column in get_table(table_name).columns]
