import psycopg2
from psycopg2 import sql
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.engine import make_url
from servicedesk.core.config import settings
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_database():
    """Create the target database if it doesn't exist (PostgreSQL only).

    Connection details come from DATABASE_URL, so an explicitly configured
    URL and one assembled from the POSTGRES_* settings behave the same.
    """
    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() != "postgresql":
        logger.info("Database backend is %s; skipping database creation.", url.get_backend_name())
        return

    target = url.database
    try:
        # Connect to the maintenance database to check/create the target
        con = psycopg2.connect(
            user=url.username,
            password=url.password,
            host=url.host,
            port=url.port or 5432,
            dbname="postgres",
        )
    except psycopg2.Error as e:
        logger.error(f"Could not reach PostgreSQL to create {target}: {e}")
        return

    try:
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        with con.cursor() as cur:
            cur.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (target,))
            if cur.fetchone():
                logger.info(f"Database {target} already exists.")
            else:
                logger.info(f"Database {target} does not exist. Creating...")
                cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target)))
                logger.info(f"Database {target} created successfully.")
    except psycopg2.Error as e:
        # The app user may lack CREATEDB; table creation will surface a real problem.
        logger.error(f"Error creating database {target}: {e}")
    finally:
        con.close()


if __name__ == "__main__":
    create_database()
