from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager

# Extensions are created unbound and attached in create_app()

# Database (Users, Tasks and the key/value store slots)
db = SQLAlchemy()

# Request authentication, backed by the store's session slot
login_manager = LoginManager()
