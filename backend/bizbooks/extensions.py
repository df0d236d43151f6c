# Overview: Flask extension instances for the bookkeeping database and its migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Services return committed records to routes that serialize them afterwards.
db = SQLAlchemy(session_options={"expire_on_commit": False})
migrate = Migrate()
