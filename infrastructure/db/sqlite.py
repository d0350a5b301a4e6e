import json
import logging
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from core.repositories.table_store import Row, TableStore

logger = logging.getLogger(__name__)

# колонки, которые хранятся как JSON-текст
JSON_COLUMNS = {
    "business_goals", "pain_points", "current_tools",
    "request_data", "response_data", "details", "data",
}

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        full_name TEXT NOT NULL,
        business_name TEXT NOT NULL,
        website TEXT,
        phone TEXT,
        role TEXT NOT NULL DEFAULT 'user',
        status TEXT NOT NULL DEFAULT 'active',
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS sessions (
        id TEXT PRIMARY KEY,
        user_id INTEGER NOT NULL,
        issued_at TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        revoked_at TEXT,
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS business_onboarding (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER UNIQUE NOT NULL,
        business_type TEXT NOT NULL,
        industry TEXT NOT NULL,
        company_size TEXT NOT NULL,
        annual_revenue TEXT,
        business_goals TEXT NOT NULL,
        pain_points TEXT NOT NULL,
        current_tools TEXT NOT NULL,
        budget_range TEXT,
        timeline TEXT NOT NULL,
        additional_info TEXT,
        onboarding_completed INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS wallets (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER UNIQUE NOT NULL,
        balance INTEGER NOT NULL DEFAULT 0 CHECK (balance >= 0),
        total_credited INTEGER NOT NULL DEFAULT 0,
        total_spent INTEGER NOT NULL DEFAULT 0,
        subscription_tier TEXT NOT NULL,
        monthly_allowance INTEGER NOT NULL,
        last_allowance_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        CHECK (balance = total_credited - total_spent),
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS wallet_transactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        wallet_id INTEGER NOT NULL,
        user_id INTEGER NOT NULL,
        direction TEXT NOT NULL CHECK (direction IN ('credit', 'debit')),
        kind TEXT NOT NULL,
        amount INTEGER NOT NULL CHECK (amount > 0),
        description TEXT NOT NULL,
        service_tag TEXT,
        balance_after INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(wallet_id) REFERENCES wallets(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS submissions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        request_type TEXT NOT NULL,
        request_details TEXT NOT NULL,
        service TEXT NOT NULL,
        response_data TEXT,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS interactions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        action TEXT NOT NULL,
        service TEXT NOT NULL,
        request_data TEXT,
        response_data TEXT,
        status TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS payment_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        amount_usd INTEGER NOT NULL,
        currency TEXT NOT NULL DEFAULT 'USD',
        payment_method TEXT NOT NULL,
        payment_status TEXT NOT NULL,
        description TEXT NOT NULL,
        transaction_ref TEXT NOT NULL,
        subscription_tier TEXT,
        ixp_credits_purchased INTEGER,
        created_at TEXT NOT NULL,
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS admin_actions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        admin_id INTEGER NOT NULL,
        action TEXT NOT NULL,
        target_user_id INTEGER,
        details TEXT,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS drafts (
        user_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        data TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        PRIMARY KEY (user_id, name),
        FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
    );
    """,
)


def init_db(db_path: str) -> None:
    if db_path != ":memory:" and not db_path.startswith("file:"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, check_same_thread=False)
    try:
        cur = conn.cursor()
        for statement in SCHEMA:
            cur.execute(statement)
        conn.commit()
    finally:
        conn.close()
    logger.info("database initialised at %s", db_path)


def connect(db_path: str) -> sqlite3.Connection:
    # isolation_level=None: транзакции открываем явно через SQLiteTableStore.transaction()
    conn = sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _ident(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid identifier: {name!r}")
    return name


def _encode(column: str, value: Any) -> Any:
    if column in JSON_COLUMNS and value is not None:
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def _decode(row: sqlite3.Row) -> Row:
    out: Row = {}
    for key in row.keys():
        value = row[key]
        if key in JSON_COLUMNS and isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                value = {"raw": value}
        out[key] = value
    return out


def _where(filters: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
    if not filters:
        return "", []
    clauses = []
    params: List[Any] = []
    for column, value in filters.items():
        if value is None:
            clauses.append(f"{_ident(column)} IS NULL")
        else:
            clauses.append(f"{_ident(column)} = ?")
            params.append(_encode(column, value))
    return " WHERE " + " AND ".join(clauses), params


class SQLiteTableStore(TableStore):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator["SQLiteTableStore"]:
        # вложенные вызовы участвуют во внешней транзакции
        if self._depth == 0:
            self.conn.execute("BEGIN IMMEDIATE")
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.conn.execute("ROLLBACK")
            raise
        self._depth -= 1
        if self._depth == 0:
            self.conn.execute("COMMIT")

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
               descending: bool = False, limit: Optional[int] = None, offset: int = 0) -> List[Row]:
        where, params = _where(filters)
        sql = f"SELECT * FROM {_ident(table)}{where}"
        if order_by:
            sql += f" ORDER BY {_ident(order_by)} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params += [int(limit), int(offset)]
        cur = self.conn.execute(sql, params)
        return [_decode(r) for r in cur.fetchall()]

    def insert(self, table: str, values: Dict[str, Any]) -> Row:
        columns = [_ident(c) for c in values]
        placeholders = ", ".join("?" for _ in columns)
        cur = self.conn.execute(
            f"INSERT INTO {_ident(table)} ({', '.join(columns)}) VALUES ({placeholders})",
            [_encode(c, v) for c, v in values.items()],
        )
        row = self.conn.execute(f"SELECT * FROM {table} WHERE rowid = ?", (cur.lastrowid,)).fetchone()
        return _decode(row)

    def update(self, table: str, values: Optional[Dict[str, Any]] = None, filters: Optional[Dict[str, Any]] = None,
               increments: Optional[Dict[str, int]] = None, guards: Optional[Dict[str, int]] = None) -> int:
        assignments = []
        params: List[Any] = []
        for column, value in (values or {}).items():
            assignments.append(f"{_ident(column)} = ?")
            params.append(_encode(column, value))
        for column, delta in (increments or {}).items():
            assignments.append(f"{_ident(column)} = {column} + ?")
            params.append(int(delta))
        if not assignments:
            raise ValueError("Nothing to update")

        where, where_params = _where(filters)
        guard_clauses = [f"{_ident(c)} >= ?" for c in (guards or {})]
        if guard_clauses:
            where = (where + " AND " if where else " WHERE ") + " AND ".join(guard_clauses)
            where_params += [int(v) for v in (guards or {}).values()]

        cur = self.conn.execute(
            f"UPDATE {_ident(table)} SET {', '.join(assignments)}{where}",
            params + where_params,
        )
        return cur.rowcount

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        if not filters:
            raise ValueError("Refusing to delete without a filter")
        where, params = _where(filters)
        cur = self.conn.execute(f"DELETE FROM {_ident(table)}{where}", params)
        return cur.rowcount

    def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
        where, params = _where(filters)
        row = self.conn.execute(f"SELECT COUNT(*) FROM {_ident(table)}{where}", params).fetchone()
        return int(row[0])

    def total(self, table: str, column: str, filters: Optional[Dict[str, Any]] = None) -> int:
        where, params = _where(filters)
        row = self.conn.execute(
            f"SELECT COALESCE(SUM({_ident(column)}), 0) FROM {_ident(table)}{where}", params
        ).fetchone()
        return int(row[0])
