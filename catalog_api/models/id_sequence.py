from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from catalog_api.extensions import db


class IdSequence(db.Model):
    __tablename__ = "id_sequences"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_value: Mapped[int] = mapped_column(nullable=False, default=0)
