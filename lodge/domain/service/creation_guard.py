"""Optimistic creation with recovery from uniqueness conflicts."""

from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import logfire

from lodge.domain.error import DuplicateKeyError, IntegrityFaultError

T = TypeVar("T")


async def create_or_recover(
    create: Callable[[], Awaitable[T]],
    recover: Callable[[], Awaitable[Optional[T]]],
    disambiguate: Callable[[], Awaitable[T]],
    entity: str = "entity",
) -> T:
    """Insert an entity; if a concurrent writer got there first, use theirs.

    1. ``create`` inserts optimistically.
    2. On a uniqueness violation, ``recover`` re-reads by the identity key
       and its result wins.
    3. If nothing is found the collision was on some other unique field,
       so ``disambiguate`` inserts once more with a disambiguated secondary
       identifier.

    A second collision is fatal.

    Args:
        create: Inserts the entity, raising DuplicateKeyError on conflict
        recover: Re-reads the entity that won the race, None if there is none
        disambiguate: Inserts with a disambiguated secondary identifier
        entity: Name used in logs

    Returns:
        The created or recovered entity

    Raises:
        IntegrityFaultError: If the disambiguated insert collides as well
    """
    try:
        return await create()
    except DuplicateKeyError as e:
        logfire.info("Concurrent creation detected", entity=entity, field=e.field)

    winner = await recover()
    if winner is not None:
        logfire.info("Recovered concurrently created record", entity=entity)
        return winner

    try:
        created = await disambiguate()
    except DuplicateKeyError as e:
        logfire.error(
            "Creation collided twice", entity=entity, field=e.field
        )
        raise IntegrityFaultError(
            f"Could not create {entity}: unique field {e.field} keeps colliding"
        ) from e

    logfire.info("Created with disambiguated identifier", entity=entity)
    return created
