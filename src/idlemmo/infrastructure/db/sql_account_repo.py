import logging
from typing import Any, List, Mapping

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from idlemmo.domain.models.account import Account
from idlemmo.domain.repositories import AccountRepository
from idlemmo.errors import StoreError


logger = logging.getLogger(__name__)


_CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email VARCHAR(255) NOT NULL,
    api_token TEXT NOT NULL,
    cookie_str TEXT NOT NULL
)
"""


class SqlAccountRepository(AccountRepository):
    def __init__(self, session_factory: sessionmaker, *, create_schema: bool = True) -> None:
        self._session_factory = session_factory
        if create_schema:
            self.ensure_schema()

    def ensure_schema(self) -> None:
        try:
            with self._session_factory.begin() as session:
                dialect = session.bind.dialect.name if session.bind is not None else "sqlite"
                ddl = _CREATE_USERS_TABLE
                if dialect == "mysql":
                    ddl = ddl.replace("AUTOINCREMENT", "AUTO_INCREMENT")
                elif dialect == "postgresql":
                    ddl = ddl.replace("INTEGER PRIMARY KEY AUTOINCREMENT", "SERIAL PRIMARY KEY")
                session.execute(text(ddl))
        except SQLAlchemyError as exc:
            raise StoreError(f"Database connection error: {exc}") from exc

    def list_all(self) -> List[Account]:
        try:
            with self._session_factory() as session:
                rows = session.execute(
                    text("SELECT id, email, api_token, cookie_str FROM users ORDER BY id")
                ).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Database request error: {exc}") from exc

        accounts = [
            Account(id=int(row.id), email=row.email, api_token=row.api_token, cookie_str=row.cookie_str)
            for row in rows
        ]
        logger.info("Successfully fetched and parsed all users.", extra={"count": len(accounts)})
        return accounts

    def insert(self, record: Mapping[str, Any]) -> int:
        params = {
            "email": str(record.get("email", "")),
            "api_token": str(record.get("api_token", "")),
            "cookie_str": str(record.get("cookie_str", "")),
        }
        try:
            with self._session_factory.begin() as session:
                statement = """
                    INSERT INTO users (email, api_token, cookie_str)
                    VALUES (:email, :api_token, :cookie_str)
                """
                if session.bind is not None and session.bind.dialect.name == "postgresql":
                    inserted_id = session.execute(text(statement + " RETURNING id"), params).scalar_one()
                else:
                    inserted_id = session.execute(text(statement), params).lastrowid
        except SQLAlchemyError as exc:
            raise StoreError(f"Database request error: {exc}") from exc

        logger.info("User inserted into database", extra={"inserted_id": inserted_id})
        return int(inserted_id)

    def remove(self, account_id: int) -> None:
        try:
            with self._session_factory.begin() as session:
                session.execute(text("DELETE FROM users WHERE id = :id"), {"id": int(account_id)})
        except SQLAlchemyError as exc:
            raise StoreError(f"Database request error: {exc}") from exc
        logger.info("User removed from database", extra={"user_id": account_id})
