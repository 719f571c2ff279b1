# leaseiq/main.py
from .entrypoints.fastapi_app import app_factory

# uvicorn leaseiq.main:app
app = app_factory()
