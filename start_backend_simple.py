#!/usr/bin/env python3
"""
Simple Backend Starter
Starts the Eventhub FastAPI backend
"""

import uvicorn
import os
import sys

if __name__ == "__main__":
    # Run from the project root so relative SQLite paths land here
    script_dir = os.path.dirname(os.path.abspath(__file__))
    os.chdir(script_dir)
    sys.path.insert(0, script_dir)

    port = int(os.getenv("PORT", "8000"))

    print(f"Starting Eventhub API from: {script_dir}")
    print(f"API docs will be available at: http://localhost:{port}/docs")

    uvicorn.run(
        "eventhub.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        reload_dirs=["./eventhub"],
    )
