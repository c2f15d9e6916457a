from auction_app.models_sqlalchemy import Base, engine
from auction_app.models_sqlalchemy import models  # noqa: F401  registers tables on Base.metadata


def init_db():
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")


if __name__ == "__main__":
    init_db()
