import os


def _flag(name, default):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev_secret_key')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URI', 'sqlite:///tasks.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SEED_ON_STARTUP = _flag('SEED_ON_STARTUP', 'true')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
