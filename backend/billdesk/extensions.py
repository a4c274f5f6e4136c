# Overview: Shared Flask extension instances; bound to the app in create_app().

"""
``db`` backs the ledger store (accounts, products, customers, invoices,
inventory logs). ``migrate`` exposes the Alembic scripts under
backend/migrations as ``flask db ...``.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
