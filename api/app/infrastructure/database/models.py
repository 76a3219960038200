"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func

from app.infrastructure.database.session import Base
from app.shared.constants.job_constants import JobSource


class ManagerModel(Base):
    """Modelo de base de datos para managers (supervisores de obra)."""

    __tablename__ = "managers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Manager(id={self.id}, name={self.name})>"


class SupplierModel(Base):
    """Modelo de base de datos para proveedores."""

    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Supplier(id={self.id}, name={self.name})>"


class JobModel(Base):
    """
    Modelo de base de datos para jobs.

    job_number es la clave de negocio unica: el sync desde Excel hace UPSERT
    sobre ella. manager_id y supplier_id se asignan desde el panel y el sync
    nunca los escribe; manager_name_raw guarda el texto tal cual viene de la
    planilla.
    """

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    job_number = Column(String(64), nullable=False, unique=True, index=True)
    site_name = Column(String(255), nullable=False)
    client = Column(String(255), nullable=True)

    # Procedencia
    source = Column(SQLEnum(JobSource), nullable=False, default=JobSource.APP, index=True)
    imported_at = Column(DateTime(timezone=True), nullable=True)
    excel_file_name = Column(String(255), nullable=True)
    excel_sheet_name = Column(String(255), nullable=True)
    excel_row_ref = Column(String(255), nullable=True)

    # Referencia textual vs relacion autoritativa
    manager_name_raw = Column(String(255), nullable=True)
    manager_id = Column(Integer, ForeignKey("managers.id", ondelete="SET NULL"), nullable=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Job(id={self.id}, job_number={self.job_number}, source={self.source})>"
