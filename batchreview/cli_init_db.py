"""CLI script to create (or verify) the review database file."""
import argparse

from batchreview.db import StorageEngine
from batchreview.settings import settings


def init_db(db_path: str) -> StorageEngine:
    """Create the snapshot file with all tables, or load and re-save an existing one."""
    engine = StorageEngine(db_path)
    engine.initialize()
    engine.persist()
    return engine


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db-path",
        default=settings.DATABASE_PATH,
        help="Snapshot file location (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    engine = init_db(args.db_path)
    engine.close()
    print(f"Database ready at {args.db_path}")


if __name__ == "__main__":
    main()
