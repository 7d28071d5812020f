"""
HTTP entry point for Spend Wise.

Run with any of:

    spendwise-server
    python -m app.main
    uvicorn app.main:app --port 3000
"""

from spendwise.api import create_app
from spendwise.api.server import main


app = create_app()


if __name__ == "__main__":
    main(app)
