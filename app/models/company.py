"""
Company model - the employer behind a job posting.
"""
from typing import TYPE_CHECKING, List
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.job import Job


class Company(BaseModel):
    """Employer entity. Alert emails show its name next to each match."""

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    jobs: Mapped[List["Job"]] = relationship(
        "Job",
        back_populates="company",
    )

    def __repr__(self) -> str:
        return f"<Company {self.name}>"
