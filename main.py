"""
Fleet Status Reconciliation Backend
===================================
Entry point. Run with: uvicorn main:app --reload

The reconciliation worker starts with the app; run ``python seed.py`` first
for sample vehicles, drivers, orders and schedules.
"""

import uvicorn

from src.api.app import create_app
from src.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
        reload=True,
    )
