from rafflereel.db.engine import get_sessionmaker, make_engine
from rafflereel.models import Base, RegistrationSource
from rafflereel.workflows import register_participant

SAMPLE_NAMES = [
    ("Ada", "Lovelace", RegistrationSource.CSV),
    ("Alan", "Turing", RegistrationSource.CSV),
    ("Grace", "Hopper", RegistrationSource.CSV),
    ("Edsger", "Dijkstra", RegistrationSource.FORM),
    ("Barbara", "Liskov", RegistrationSource.FORM),
    ("Donald", "Knuth", RegistrationSource.REMOTE),
]


def main() -> None:
    """Seed the development database with sample registrations."""
    engine = make_engine()

    # Drop and recreate all tables for a clean slate.
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    with Session.begin() as session:
        for first_name, last_name, source in SAMPLE_NAMES:
            register_participant(session, first_name, last_name, source=source)

    print(f"Seeded {len(SAMPLE_NAMES)} registrations.")


if __name__ == "__main__":
    main()
