#!/usr/bin/env python3
"""
Run the quote pricing portal API.
"""

import os
import sys


def main() -> None:
    # Make src importable
    repo_root = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, os.path.join(repo_root, "src"))

    import uvicorn

    from config.settings import get_settings

    settings = get_settings()
    uvicorn.run(
        "web.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
