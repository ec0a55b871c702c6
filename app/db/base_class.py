# /aria-backend/app/db/base_class.py

from sqlalchemy.orm import declarative_base

# Every ORM model inherits from this Base so a single metadata object
# describes the whole schema.
Base = declarative_base()
