"""
Create tables and, with --seed, fill an empty slot table with demo slots.

    python scripts/init_db.py [--seed]
"""

import sys, pathlib
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from backend.app.database import engine
from backend.app.init_db import init_db


def main():
    seed = "--seed" in sys.argv[1:]
    print(f"Using DB: {engine.url}")
    init_db(engine, seed=seed or None)
    print("Schema ready" + (" (demo slots seeded if table was empty)" if seed else ""))


if __name__ == "__main__":
    main()
