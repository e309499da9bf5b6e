"""tracker_db: shared database library (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` for Alembic autogenerate/targeting
- ORM models in ``tracker_db.models.finance`` (re-exported for convenience)
- Engine/session helpers in ``tracker_db.client``
"""

from __future__ import annotations

from .models.finance import Base, BillReminder, Budget, MonthlyApproval, RevolutTransaction

# Re-export SQLAlchemy metadata for Alembic's env.py
metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "Budget",
    "BillReminder",
    "MonthlyApproval",
    "RevolutTransaction",
]
