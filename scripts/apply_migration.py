import os
import sys
import glob
import psycopg2
from dotenv import load_dotenv

SQL_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'sql')


def connect():
    load_dotenv()

    database_url = os.getenv('DATABASE_URL')
    if database_url and database_url.startswith('postgres'):
        return psycopg2.connect(database_url)

    return psycopg2.connect(
        host=os.getenv('DB_HOST', 'localhost'),
        port=os.getenv('DB_PORT', '5432'),
        database=os.getenv('DB_NAME', 'postgres'),
        user=os.getenv('DB_USER', 'postgres'),
        password=os.getenv('DB_PASSWORD', 'postgres')
    )


def apply_migrations(migration_files):
    try:
        conn = connect()
        conn.autocommit = True
        cur = conn.cursor()

        for migration_file in migration_files:
            print(f"Applying migration: {migration_file}")
            with open(migration_file, 'r', encoding='utf-8') as f:
                cur.execute(f.read())

        print(f"{len(migration_files)} migration(s) applied successfully!")

        cur.close()
        conn.close()
    except (psycopg2.Error, OSError) as e:
        print(f"Error applying migration: {e}")
        sys.exit(1)


if __name__ == "__main__":
    # No arguments: every file under sql/ in name order
    files = sys.argv[1:] or sorted(glob.glob(os.path.join(SQL_DIR, '*.sql')))
    if not files:
        print("Usage: python scripts/apply_migration.py [path_to_sql_file ...]")
        sys.exit(1)

    apply_migrations(files)
