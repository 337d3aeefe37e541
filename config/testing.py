from config.config import *  # noqa: F401,F403
from config.config import db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env()

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
