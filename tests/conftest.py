import os

# settings are read when feedback_forms.db is first imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ADMIN_TOKEN", "")
