# Overview: Flask extension instances shared by models, services and the CLI.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Session/engine for orders, menu and tax reports
db = SQLAlchemy()
# Alembic integration for backend/migrations
migrate = Migrate(directory="migrations")
