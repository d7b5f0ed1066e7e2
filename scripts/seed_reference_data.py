from pathlib import Path
import sys

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from grade_service.db.session import get_session_factory
from grade_service.services.reference import ensure_reference_data


def main() -> None:
    session_factory = get_session_factory()
    with session_factory() as db:
        inserted = ensure_reference_data(db)
    print(f"Inserted reference rows: {inserted}")


if __name__ == "__main__":
    main()
