# Overview: shared Flask extension instances. The SQL repositories go through
# `db.session`; Flask-Migrate owns the schema under backend/migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
