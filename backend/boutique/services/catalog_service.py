"""
Lookup tables edited from the settings screens: categories, brands, units
and label paper sizes. They share one set of CRUD helpers keyed by model.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, Brand, Unit, PaperSize
from ..validation import ConflictError

CATALOG_MODELS = {
    "categories": Category,
    "brands": Brand,
    "units": Unit,
    "paper-sizes": PaperSize,
}


def list_entries(model) -> list:
    return db.session.query(model).order_by(model.name.asc(), model.id.asc()).all()


def get_entry(model, entry_id: int):
    return db.session.get(model, entry_id)


def create_entry(model, *, patch: dict):
    entry = model(**patch)
    db.session.add(entry)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"{model.__name__} with this name already exists")
    return entry


def update_entry(model, entry_id: int, *, patch: dict):
    entry = db.session.get(model, entry_id)
    if entry is None:
        return None
    for k, v in patch.items():
        setattr(entry, k, v)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"{model.__name__} with this name already exists")
    return entry


def delete_entry(model, entry_id: int) -> bool:
    entry = db.session.get(model, entry_id)
    if entry is None:
        return False
    db.session.delete(entry)
    db.session.commit()
    return True
