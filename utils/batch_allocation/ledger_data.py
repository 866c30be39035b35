"""
Batch Inventory Data Layer
==========================
Document storage for batches, products and students.

Each collection is a table; nested arrays (batch `items`, product `variants`)
are stored as JSON text so documents round-trip in their original shape.
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import text, bindparam, DateTime
from sqlalchemy.engine import Connection, Engine

from utils.db import get_db_engine

logger = logging.getLogger(__name__)

SCHEMA_TEMPLATES = [
    """
    CREATE TABLE IF NOT EXISTS batch_inventory (
        id VARCHAR(64) PRIMARY KEY,
        name VARCHAR(255),
        items {document},
        created_at {timestamp},
        updated_at {timestamp}
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id VARCHAR(64) PRIMARY KEY,
        name VARCHAR(255),
        price {real},
        variants {document}
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS students (
        id VARCHAR(64) PRIMARY KEY,
        name VARCHAR(255)
    )
    """,
]

# MySQL TEXT stops at 64KB, too small for a long allocation log
MYSQL_COLUMN_TYPES = {'document': 'LONGTEXT', 'timestamp': 'DATETIME', 'real': 'DOUBLE'}
COLUMN_TYPES = {
    'mysql': MYSQL_COLUMN_TYPES,
    'mariadb': MYSQL_COLUMN_TYPES,
}
DEFAULT_COLUMN_TYPES = {'document': 'TEXT', 'timestamp': 'TIMESTAMP', 'real': 'DOUBLE PRECISION'}

# Dialects that understand SELECT ... FOR UPDATE
ROW_LOCK_DIALECTS = {'mysql', 'mariadb', 'postgresql'}


def schema_statements(dialect_name: str) -> List[str]:
    """CREATE TABLE statements with column types for the given dialect"""
    types = COLUMN_TYPES.get(dialect_name, DEFAULT_COLUMN_TYPES)
    return [template.format(**types) for template in SCHEMA_TEMPLATES]


def _loads(raw: Optional[str]) -> List[Dict[str, Any]]:
    if not raw:
        return []
    return json.loads(raw)


class BatchInventoryData:
    """Data access layer for batch, product and student documents"""

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_db_engine()

    def ensure_schema(self):
        """Create the document tables if they do not exist"""
        with self.engine.begin() as conn:
            for statement in schema_statements(conn.dialect.name):
                conn.execute(text(statement))

    # ================================================================
    # BATCHES
    # ================================================================

    def _batch_from_row(self, row) -> Dict[str, Any]:
        data = dict(row._mapping)
        return {
            'id': data['id'],
            'name': data['name'],
            'items': _loads(data['items']),
            'createdAt': data['created_at'],
            'updatedAt': data['updated_at'],
        }

    def get_batch(
        self,
        batch_id: str,
        conn: Optional[Connection] = None,
        for_update: bool = False
    ) -> Optional[Dict[str, Any]]:
        """
        Get one batch document, or None when it does not exist.

        Pass `conn` to read inside the caller's transaction; `for_update`
        locks the batch until that transaction ends. SQLite has no row
        locks, so there the whole database is write-locked instead.
        """
        sql = """
            SELECT id, name, items, created_at, updated_at
            FROM batch_inventory
            WHERE id = :id
        """
        if conn is None:
            with self.engine.connect() as own_conn:
                return self.get_batch(batch_id, conn=own_conn, for_update=False)

        if for_update:
            if conn.dialect.name in ROW_LOCK_DIALECTS:
                sql += " FOR UPDATE"
            elif conn.dialect.name == 'sqlite':
                self._begin_immediate(conn)
        query = text(sql).columns(created_at=DateTime, updated_at=DateTime)
        row = conn.execute(query, {'id': batch_id}).fetchone()
        if row is None:
            return None
        return self._batch_from_row(row)

    def _begin_immediate(self, conn: Connection):
        """
        Open the pysqlite transaction with BEGIN IMMEDIATE.

        pysqlite only issues BEGIN before the first write, so a plain SELECT
        holds no lock and two writers can both read the same document.
        """
        if not conn.connection.dbapi_connection.in_transaction:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    def list_batches(self) -> List[Dict[str, Any]]:
        """All batches, newest first"""
        try:
            query = text("""
                SELECT id, name, items, created_at, updated_at
                FROM batch_inventory
                ORDER BY created_at DESC
            """).columns(created_at=DateTime, updated_at=DateTime)

            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
            return [self._batch_from_row(row) for row in rows]

        except Exception as e:
            logger.error(f"Error listing batches: {e}")
            return []

    def add_batch(self, batch: Dict[str, Any]) -> str:
        """Insert a batch document and return its id"""
        batch_id = batch.get('id') or uuid.uuid4().hex
        now = datetime.now()
        query = text("""
            INSERT INTO batch_inventory (id, name, items, created_at, updated_at)
            VALUES (:id, :name, :items, :created_at, :updated_at)
        """).bindparams(
            bindparam('created_at', type_=DateTime),
            bindparam('updated_at', type_=DateTime),
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(query, {
                    'id': batch_id,
                    'name': batch.get('name'),
                    'items': json.dumps(batch.get('items') or []),
                    'created_at': batch.get('createdAt') or now,
                    'updated_at': batch.get('updatedAt') or now,
                })
        except Exception as e:
            logger.error(f"Error adding batch {batch_id}: {e}")
            raise

        logger.info(f"Batch {batch_id} created with {len(batch.get('items') or [])} items")
        return batch_id

    def update_batch_items(
        self,
        batch_id: str,
        items: List[Dict[str, Any]],
        conn: Connection
    ):
        """Replace a batch's item list and stamp updated_at, in the caller's transaction"""
        query = text("""
            UPDATE batch_inventory
            SET items = :items, updated_at = :updated_at
            WHERE id = :id
        """).bindparams(bindparam('updated_at', type_=DateTime))
        conn.execute(query, {
            'id': batch_id,
            'items': json.dumps(items),
            'updated_at': datetime.now(),
        })

    def update_batch(self, batch_id: str, changes: Dict[str, Any]) -> bool:
        """
        Update a batch's name and/or items.

        Returns False when the batch does not exist.
        """
        assignments = ["updated_at = :updated_at"]
        params = {'id': batch_id, 'updated_at': datetime.now()}
        if 'name' in changes:
            assignments.append("name = :name")
            params['name'] = changes['name']
        if 'items' in changes:
            assignments.append("items = :items")
            params['items'] = json.dumps(changes['items'] or [])

        query = text(f"""
            UPDATE batch_inventory
            SET {', '.join(assignments)}
            WHERE id = :id
        """).bindparams(bindparam('updated_at', type_=DateTime))
        try:
            with self.engine.begin() as conn:
                updated = conn.execute(query, params).rowcount
        except Exception as e:
            logger.error(f"Error updating batch {batch_id}: {e}")
            raise

        if not updated:
            logger.warning(f"Batch {batch_id} not found for update")
            return False
        logger.info(f"Batch {batch_id} updated")
        return True

    def delete_batch(self, batch_id: str) -> bool:
        """Delete a batch; False when it does not exist"""
        try:
            with self.engine.begin() as conn:
                deleted = conn.execute(
                    text("DELETE FROM batch_inventory WHERE id = :id"),
                    {'id': batch_id}
                ).rowcount
        except Exception as e:
            logger.error(f"Error deleting batch {batch_id}: {e}")
            raise

        if not deleted:
            logger.warning(f"Batch {batch_id} not found for deletion")
            return False
        logger.info(f"Batch {batch_id} deleted")
        return True

    # ================================================================
    # PRODUCTS & STUDENTS (read-only for the ledger)
    # ================================================================

    def get_products(self) -> List[Dict[str, Any]]:
        """All products with their variants"""
        try:
            query = text("SELECT id, name, price, variants FROM products ORDER BY name")
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
            return [
                {
                    'id': row.id,
                    'name': row.name,
                    'price': row.price,
                    'variants': _loads(row.variants),
                }
                for row in rows
            ]
        except Exception as e:
            logger.error(f"Error getting products: {e}")
            return []

    def add_product(self, product: Dict[str, Any]) -> str:
        product_id = product.get('id') or uuid.uuid4().hex
        query = text("""
            INSERT INTO products (id, name, price, variants)
            VALUES (:id, :name, :price, :variants)
        """)
        try:
            with self.engine.begin() as conn:
                conn.execute(query, {
                    'id': product_id,
                    'name': product.get('name'),
                    'price': product.get('price'),
                    'variants': json.dumps(product.get('variants') or []),
                })
        except Exception as e:
            logger.error(f"Error adding product {product_id}: {e}")
            raise
        return product_id

    def get_students(self) -> List[Dict[str, Any]]:
        try:
            query = text("SELECT id, name FROM students ORDER BY name")
            with self.engine.connect() as conn:
                rows = conn.execute(query).fetchall()
            return [dict(row._mapping) for row in rows]
        except Exception as e:
            logger.error(f"Error getting students: {e}")
            return []

    def add_student(self, student: Dict[str, Any]) -> str:
        student_id = student.get('id') or uuid.uuid4().hex
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text("INSERT INTO students (id, name) VALUES (:id, :name)"),
                    {'id': student_id, 'name': student.get('name')}
                )
        except Exception as e:
            logger.error(f"Error adding student {student_id}: {e}")
            raise
        return student_id
