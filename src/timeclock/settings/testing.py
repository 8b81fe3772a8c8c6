SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "timeclock_test",
}

DEBUG = False
TESTING = True

STORAGE_BACKEND = "memory"
AUTO_INIT_DB = False

LOG_LEVEL = "WARNING"
