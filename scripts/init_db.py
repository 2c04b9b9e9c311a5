#!/usr/bin/env python3

"""
Database Initialization Script
Creates the match settings table used for arena, lobby and border settings
"""

from uhc import app, db
from uhc.model.match_settings import MatchSetting


def init_db():
    """Initialize the database with all tables"""
    print("=" * 60)
    print("UHC Orchestrator - Database Initialization")
    print("=" * 60)

    with app.app_context():
        db.create_all()
        inspector = db.inspect(db.engine)
        tables = inspector.get_table_names()
        print(f"\nTables: {', '.join(tables)}")
        print(f"Stored settings: {MatchSetting.query.count()}")


if __name__ == "__main__":
    init_db()
