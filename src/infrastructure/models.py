"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``drivers``             -- people who can be assigned to vehicles
* ``vehicles``            -- fleet vehicles with derived status / driver
* ``maintenance_orders``  -- workshop bookings that take a vehicle off duty
* ``vehicle_schedules``   -- date ranges assigning a driver to a vehicle

Indexes
-------
* **B-Tree** on ``status`` and ``vehicle_id`` for the reconciliation snapshot
  and the per-vehicle overlap checks made at creation time.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)

from .database import Base
from src.domain.enums import MaintenanceOrderStatus, ScheduleStatus, VehicleStatus


def _values(enum_cls):
    return [member.value for member in enum_cls]


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    id_number = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    make = Column(String(80), nullable=True)
    model = Column(String(80), nullable=True)
    year = Column(Integer, nullable=True)
    license_plate = Column(String(32), nullable=True)

    # Derived state, owned by the reconciliation engine
    status = Column(
        Enum(VehicleStatus, name="vehiclestatus", values_callable=_values),
        default=VehicleStatus.IDLE,
        nullable=False,
    )
    assigned_driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (Index("idx_vehicles_status", "status"),)


class MaintenanceOrderModel(Base):
    __tablename__ = "maintenance_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), nullable=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    status = Column(
        Enum(
            MaintenanceOrderStatus,
            name="maintenanceorderstatus",
            values_callable=_values,
        ),
        default=MaintenanceOrderStatus.SCHEDULED,
        nullable=False,
    )
    start_date = Column(Date, nullable=False)
    estimated_completion_date = Column(Date, nullable=False)
    urgent = Column(Boolean, default=False, nullable=False)

    type = Column(String(80), nullable=True)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    cost = Column(Float, nullable=True)
    quotation_details = Column(Text, nullable=True)
    comments = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_maintenance_orders_status", "status"),
        Index("idx_maintenance_orders_vehicle", "vehicle_id"),
    )


class VehicleScheduleModel(Base):
    __tablename__ = "vehicle_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=False)
    status = Column(
        Enum(ScheduleStatus, name="schedulestatus", values_callable=_values),
        default=ScheduleStatus.SCHEDULED,
        nullable=False,
    )
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_vehicle_schedules_status", "status"),
        Index("idx_vehicle_schedules_vehicle", "vehicle_id"),
        Index("idx_vehicle_schedules_driver", "driver_id"),
    )
