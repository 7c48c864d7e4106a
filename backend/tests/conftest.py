import os

# Must be set before app.core.config is imported.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("ORDER_STORE", "memory")
os.environ.setdefault("SEED_DEMO_DATA", "false")
