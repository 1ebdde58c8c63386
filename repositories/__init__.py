"""
Persistence ports consumed by the core.

Plain functions over the Flask-SQLAlchemy session. ``save_*`` functions add
and flush so ids are populated; committing is left to the calling service,
which owns the transaction.
"""
