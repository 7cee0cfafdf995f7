"""
Table-level persistence for Red List primate data.

Each populate_* function maps its keyword arguments onto the table's column
list and upserts one row keyed by the table's conflict target.
"""

from typing import Any, Dict, Sequence

from .db.connector import Database, QueryResult, upsert
from .log_config import get_logger, module_label
from .schema import CONFLICT_KEYS, column_names

logger = get_logger(__name__, label=module_label(__file__))


async def get_all_species(db: Database) -> QueryResult:
    """
    Fetch every row of the species table.

    No filtering, ordering or pagination is applied. An empty table yields an
    empty, successful result.
    """
    return await db.query("SELECT * FROM species")


async def populate_table(
    db: Database,
    table_name: str,
    columns: Sequence[str],
    values: Sequence[Any],
    conflict_columns: Sequence[str]
) -> QueryResult:
    """
    Upsert one row into ``table_name``.

    Args:
        db: Open Database
        table_name: Target table
        columns: Ordered column names
        values: Row values aligned with columns
        conflict_columns: Columns whose equality turns the insert into an update

    Returns:
        QueryResult with the inserted/updated row
    """
    result = await upsert(db, table_name, columns, values, conflict_columns)

    if not result.ok:
        logger.warning(
            "Upsert failed",
            table=table_name,
            conflict_columns=list(conflict_columns),
            error_type=type(result.error).__name__,
        )

    return result


async def _populate(db: Database, table_name: str, record: Dict[str, Any]) -> QueryResult:
    columns = column_names(table_name)
    values = [record[col] for col in columns]
    return await populate_table(db, table_name, columns, values, CONFLICT_KEYS[table_name])


async def populate_species_table(
    db: Database,
    name: str,
    family: str = None,
    genus: str = None,
    category: str = None,
    common_name: str = None,
    published_year: int = None,
    assessment_date: str = None,
    criteria: str = None,
    population_trend: str = None,
    marine_system: bool = None,
    freshwater_system: bool = None,
    terrestrial_system: bool = None,
    citation: str = None,
) -> QueryResult:
    """Upsert a species, keyed by scientific name."""
    return await _populate(db, "species", {
        "name": name,
        "family": family,
        "genus": genus,
        "category": category,
        "common_name": common_name,
        "published_year": published_year,
        "assessment_date": assessment_date,
        "criteria": criteria,
        "population_trend": population_trend,
        "marine_system": marine_system,
        "freshwater_system": freshwater_system,
        "terrestrial_system": terrestrial_system,
        "citation": citation,
    })


async def populate_threats_table(
    db: Database,
    name: str,
    code: str,
    title: str = None,
    timing: str = None,
    score: str = None,
) -> QueryResult:
    """Upsert a threat for a species, keyed by (name, code)."""
    return await _populate(db, "threats", {
        "name": name,
        "code": code,
        "title": title,
        "timing": timing,
        "score": score,
    })


async def populate_conservation_measures_table(
    db: Database,
    name: str,
    code: str,
    title: str = None,
) -> QueryResult:
    """Upsert a conservation measure, keyed by (name, code)."""
    return await _populate(db, "conservation_measures", {
        "name": name,
        "code": code,
        "title": title,
    })


async def populate_assessments_table(
    db: Database,
    name: str,
    year: int,
    code: str,
    category: str = None,
) -> QueryResult:
    """Upsert a historical assessment, keyed by (name, code)."""
    return await _populate(db, "assessments", {
        "name": name,
        "year": year,
        "code": code,
        "category": category,
    })


async def populate_countries_table(
    db: Database,
    name: str,
    country: str,
    presence: str = None,
    origin: str = None,
) -> QueryResult:
    """Upsert a country occurrence, keyed by (name, country)."""
    return await _populate(db, "countries", {
        "name": name,
        "country": country,
        "presence": presence,
        "origin": origin,
    })


async def populate_habitats_table(
    db: Database,
    name: str,
    code: str,
    habitat: str = None,
) -> QueryResult:
    """Upsert a habitat, keyed by (name, code)."""
    return await _populate(db, "habitats", {
        "name": name,
        "code": code,
        "habitat": habitat,
    })


async def populate_descriptions_table(
    db: Database,
    name: str,
    taxonomicnotes: str = None,
    rationale: str = None,
    geographicrange: str = None,
    population: str = None,
    habitat: str = None,
    threats: str = None,
    conservationmeasures: str = None,
    usetrade: str = None,
) -> QueryResult:
    """Upsert the narrative description of a species, keyed by name."""
    return await _populate(db, "descriptions", {
        "name": name,
        "taxonomicnotes": taxonomicnotes,
        "rationale": rationale,
        "geographicrange": geographicrange,
        "population": population,
        "habitat": habitat,
        "threats": threats,
        "conservationmeasures": conservationmeasures,
        "usetrade": usetrade,
    })
