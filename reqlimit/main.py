from reqlimit.core.app_factory import create_app

# Connects to the counter store at import time; run with
# `uvicorn reqlimit.main:app`
app = create_app()
