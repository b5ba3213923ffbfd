from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base

from LINEDASH.server.utils.constants import PRIMARY_TABLE

Base = declarative_base()


###############################################################################
class LineProductionRecord(Base):
    __tablename__ = PRIMARY_TABLE
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    line_id = Column(String(64), index=True)
    lot_id = Column(String(64))
    status = Column(String(64))
    main_step = Column(String(64))
    metro_steps = Column(Text)
    metro_current_step = Column(String(64))
    metro_end_step = Column(String(64))
    custom_end_step = Column(String(64))
    inform_step = Column(String(64))
    comment = Column(Text)
    needtosend = Column(Integer, nullable=False, default=0)
    send_jira = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
