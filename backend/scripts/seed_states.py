"""Seed script to load state homeschool requirements from a JSON file.

The file holds a list of objects:
    [{"name": "Texas", "abbreviation": "TX", "minCreditsRequired": 22, "hoursPerCredit": 120}]

Existing states are matched by name and updated in place, so re-running the
script never changes the ids users reference.

Usage:
    PYTHONPATH=backend/src python backend/scripts/seed_states.py populate backend/scripts/states.json
    PYTHONPATH=backend/src python backend/scripts/seed_states.py clear
"""

import argparse
import asyncio
import json
from pathlib import Path

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import get_settings
from models import StateRequirement


def load_states(path: Path) -> list[dict]:
    """Read and validate state entries from a JSON file."""
    entries = json.loads(path.read_text(encoding='utf-8'))
    if not isinstance(entries, list):
        raise ValueError(f'{path} must contain a JSON list of states')

    states = []
    for i, entry in enumerate(entries):
        try:
            states.append({
                'name': str(entry['name']).strip(),
                'abbreviation': entry.get('abbreviation'),
                'min_credits_required': int(entry['minCreditsRequired']),
                'hours_per_credit': int(entry['hoursPerCredit']),
            })
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f'Invalid state entry at index {i}: {entry!r}') from e
    return states


async def upsert_states(session: AsyncSession, states: list[dict]) -> tuple[int, int]:
    """Insert new states and update existing ones by name. Returns (created, updated)."""
    result = await session.execute(select(StateRequirement))
    existing = {s.name: s for s in result.scalars().all()}

    created = updated = 0
    for data in states:
        state = existing.get(data['name'])
        if state is None:
            session.add(StateRequirement(**data))
            created += 1
        else:
            state.abbreviation = data['abbreviation']
            state.min_credits_required = data['min_credits_required']
            state.hours_per_credit = data['hours_per_credit']
            updated += 1
    await session.flush()
    return created, updated


async def populate(path: Path) -> None:
    """Load states from path into the database."""
    states = load_states(path)
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            created, updated = await upsert_states(session, states)
            await session.commit()
            print(f'Seeded states: {created} created, {updated} updated.')
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()


async def clear() -> None:
    """Delete all states. Users keep their copied credit requirements."""
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            result = await session.execute(delete(StateRequirement))
            await session.commit()
            print(f'Deleted {result.rowcount} states.')
        except Exception:
            await session.rollback()
            raise
        finally:
            await engine.dispose()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description='Seed state homeschool requirements.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    populate_parser = subparsers.add_parser('populate', help='Load states from a JSON file')
    populate_parser.add_argument('file', type=Path, help='Path to the states JSON file')

    subparsers.add_parser('clear', help='Remove all states')

    args = parser.parse_args()

    if args.command == 'populate':
        asyncio.run(populate(args.file))
    elif args.command == 'clear':
        asyncio.run(clear())


if __name__ == '__main__':
    main()
