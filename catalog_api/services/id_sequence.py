"""Numeric id allocation.

Ids are not generated by the database: existing consumers depend on the
legacy sequential numbering. Each entity has a counter row in
``id_sequences`` that is locked while it is bumped, so concurrent creates
cannot observe the same value. The counter never falls behind the highest id
already stored, which keeps it correct for rows imported with explicit ids.
"""

from __future__ import annotations

import logging

from sqlalchemy import case, func, select, update

from catalog_api.extensions import db
from catalog_api.models import IdSequence, Product, ProductType, User

logger = logging.getLogger(__name__)

ENTITY_MODELS = {
    "users": User,
    "product_types": ProductType,
    "products": Product,
}


def reserve_ids(entity: str, count: int = 1) -> int:
    """Reserve ``count`` consecutive ids for ``entity`` and return the first.

    The counter is bumped by one ``UPDATE`` so the database serializes
    concurrent reservations on the row (a write lock on SQLite). The
    reservation joins the caller's transaction; it becomes durable when the
    caller commits and is released if the caller rolls back.
    """
    if count < 1:
        raise ValueError("count must be at least 1")
    model = ENTITY_MODELS[entity]

    stored_max = select(func.coalesce(func.max(model.id), 0)).scalar_subquery()
    result = db.session.execute(
        update(IdSequence)
        .where(IdSequence.name == entity)
        .values(
            last_value=case(
                (IdSequence.last_value >= stored_max, IdSequence.last_value),
                else_=stored_max,
            )
            + count
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # counter rows are seeded by the initial migration; tables built with create_all lack them
        highest = db.session.scalar(select(func.max(model.id))) or 0
        db.session.add(IdSequence(name=entity, last_value=highest + count))
        db.session.flush()

    last_value = db.session.scalar(select(IdSequence.last_value).where(IdSequence.name == entity))
    first_id = last_value - count + 1
    logger.debug("reserved %s id(s) %d..%d", entity, first_id, last_value)
    return first_id


def next_id(entity: str) -> int:
    return reserve_ids(entity, 1)
