"""
SQLite数据库存储实现
每种节点类型一张表，索引字段为独立的INTEGER列，其余负载字段以JSON保存
"""
import sqlite3
from typing import Dict, List, Any, Optional, Tuple
from pathlib import Path
from contextlib import contextmanager

from nested_tree.config.tree_config import TreeConfig
from nested_tree.interfaces.idatastore import PersistOutcome
from ..serializer import JSONSerializer
from .adapter import NodeStoreAdapter
from .exceptions import StorageConnectionError, StorageOperationError
from ...exceptions import ConfigurationError, NodeNotFoundError

PAYLOAD_COLUMN = "payload"


class SQLiteStore(NodeStoreAdapter):
    """SQLite数据库存储实现"""

    store_type = "sqlite"

    def __init__(self, db_path: str, tree_config: Optional[TreeConfig] = None,
                 table: str = "nodes", serializer=None):
        """
        初始化SQLite存储

        Args:
            db_path: 数据库文件路径，":memory:" 表示内存数据库
            tree_config: 节点类型的树配置
            table: 表名
            serializer: 序列化器，默认为JSONSerializer
        """
        super().__init__(tree_config)
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self.table = table
        self.serializer = serializer or JSONSerializer()

        if PAYLOAD_COLUMN in self.tree_config.index_fields:
            raise ConfigurationError(
                message=f"字段名与负载列冲突: {PAYLOAD_COLUMN}",
                config_key="tree"
            )

        # 内存数据库只能共用一个连接
        self._shared_conn: Optional[sqlite3.Connection] = None
        if self.db_path == ":memory:":
            self._shared_conn = self._connect()
        else:
            # 确保目录存在
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # 原子批次
        self._batch_conn: Optional[sqlite3.Connection] = None
        self._depth = 0

        # 初始化数据库
        self._init_database()

    # ========== 连接管理 ==========

    def _connect(self) -> sqlite3.Connection:
        """打开数据库连接"""
        if self._shared_conn is not None:
            return self._shared_conn
        try:
            conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=30.0
            )
        except sqlite3.Error as e:
            raise StorageConnectionError(str(e), store_type=self.store_type)
        conn.row_factory = sqlite3.Row  # 返回字典式行
        return conn

    def _release(self, conn: sqlite3.Connection) -> None:
        """关闭非共享连接"""
        if conn is not self._shared_conn:
            conn.close()

    @contextmanager
    def _get_connection(self):
        """获取数据库连接（上下文管理器）；批次进行中时复用批次连接"""
        if self._batch_conn is not None:
            yield self._batch_conn
            return

        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)

    def _q(self, name: str) -> str:
        """引用标识符"""
        return f'"{name}"'

    def _init_database(self):
        """初始化数据库表结构"""
        config = self.tree_config
        columns = [f"{self._q(config.pk_field)} INTEGER PRIMARY KEY AUTOINCREMENT",
                   f"{self._q(config.left_field)} INTEGER NOT NULL",
                   f"{self._q(config.right_field)} INTEGER NOT NULL"]
        if config.multi_tree:
            columns.append(f"{self._q(config.tree_field)} INTEGER NOT NULL")
        if config.use_symlinks:
            columns.append(f"{self._q(config.symlink_field)} INTEGER")
        columns.append(f"{PAYLOAD_COLUMN} TEXT")  # JSON字符串

        unique_columns = [config.left_field]
        if config.multi_tree:
            unique_columns.insert(0, config.tree_field)

        with self._lock:
            with self._get_connection() as conn:
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {self._q(self.table)} ({', '.join(columns)})"
                )
                # 同一分区内左索引唯一，新建根节点的树ID冲突由此发现
                conn.execute(
                    f"CREATE UNIQUE INDEX IF NOT EXISTS {self._q('ux_' + self.table + '_left')} "
                    f"ON {self._q(self.table)} ({', '.join(self._q(c) for c in unique_columns)})"
                )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS {self._q('ix_' + self.table + '_right')} "
                    f"ON {self._q(self.table)} ({self._q(config.right_field)})"
                )

    # ========== 行转换 ==========

    def _split_row(self, row: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
        """拆分为索引列和负载JSON"""
        columns = {}
        payload = {}
        for key, value in row.items():
            if key in self.tree_config.index_fields:
                columns[key] = value
            else:
                payload[key] = value
        return columns, self.serializer.dumps(payload)

    def _merge_row(self, record: sqlite3.Row) -> Dict[str, Any]:
        """合并索引列和负载"""
        row = dict(record)
        payload = row.pop(PAYLOAD_COLUMN, None)
        if payload:
            row.update(self.serializer.loads(payload))
        return row

    def _where(self, query) -> Tuple[str, List[Any]]:
        """把查询谓词翻译为WHERE子句"""
        clauses = []
        params: List[Any] = []
        for predicate in query.all_predicates():
            if predicate.field not in self.tree_config.index_fields:
                raise StorageOperationError(
                    f"不支持按负载字段查询: {predicate.field}",
                    operation="query",
                    store_type=self.store_type
                )
            clauses.append(f"{self._q(predicate.field)} {predicate.op} ?")
            params.append(predicate.value)
        sql = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return sql, params

    def _select_sql(self, query) -> Tuple[str, List[Any]]:
        """构建SELECT语句"""
        where, params = self._where(query)
        sql = f"SELECT * FROM {self._q(self.table)}{where}"
        if query.order_by:
            sql += f" ORDER BY {self._q(query.order_by)} {'DESC' if query.descending else 'ASC'}"
        if query.limit is not None:
            sql += " LIMIT ?"
            params.append(query.limit)
        return sql, params

    # ========== 查询 ==========

    def fetch_one(self, query) -> Optional[Dict[str, Any]]:
        """获取满足条件的第一行"""
        sql, params = self._select_sql(query)
        with self._lock:
            with self._get_connection() as conn:
                record = self._execute(conn, sql, params, "fetch_one").fetchone()
                return self._merge_row(record) if record else None

    def fetch_many(self, query) -> List[Dict[str, Any]]:
        """获取满足条件的所有行"""
        sql, params = self._select_sql(query)
        with self._lock:
            with self._get_connection() as conn:
                cursor = self._execute(conn, sql, params, "fetch_many")
                return [self._merge_row(record) for record in cursor.fetchall()]

    def count_matching(self, query) -> int:
        """统计满足条件的行数"""
        where, params = self._where(query)
        with self._lock:
            with self._get_connection() as conn:
                cursor = self._execute(
                    conn, f"SELECT COUNT(*) FROM {self._q(self.table)}{where}", params, "count"
                )
                return cursor.fetchone()[0]

    def max_value(self, field: str) -> Optional[int]:
        """获取某字段的最大值"""
        if field not in self.tree_config.index_fields:
            raise StorageOperationError(
                f"不支持的字段: {field}", operation="max_value", store_type=self.store_type
            )
        with self._lock:
            with self._get_connection() as conn:
                cursor = self._execute(
                    conn, f"SELECT MAX({self._q(field)}) FROM {self._q(self.table)}", [], "max_value"
                )
                return cursor.fetchone()[0]

    # ========== 写入 ==========

    def persist(self, row: Dict[str, Any], create: bool = False) -> PersistOutcome:
        """
        保存一行

        新建时分配主键并写回 row；唯一索引冲突返回 CONFLICT
        """
        pk_field = self.tree_config.pk_field
        columns, payload = self._split_row(row)

        with self._lock:
            with self._get_connection() as conn:
                try:
                    if create:
                        if columns.get(pk_field) is None:
                            columns.pop(pk_field, None)
                        names = list(columns) + [PAYLOAD_COLUMN]
                        sql = (f"INSERT INTO {self._q(self.table)} "
                               f"({', '.join(self._q(n) for n in names)}) "
                               f"VALUES ({', '.join('?' for _ in names)})")
                        cursor = conn.execute(sql, list(columns.values()) + [payload])
                        row[pk_field] = cursor.lastrowid
                    else:
                        pk = columns.pop(pk_field, None)
                        names = list(columns) + [PAYLOAD_COLUMN]
                        assignments = ', '.join(f"{self._q(n)} = ?" for n in names)
                        sql = (f"UPDATE {self._q(self.table)} SET {assignments} "
                               f"WHERE {self._q(pk_field)} = ?")
                        cursor = conn.execute(sql, list(columns.values()) + [payload, pk])
                        if cursor.rowcount == 0:
                            raise NodeNotFoundError(node_id=pk)
                except sqlite3.IntegrityError:
                    return PersistOutcome.CONFLICT
                except sqlite3.Error as e:
                    raise StorageOperationError(str(e), operation="persist", store_type=self.store_type)

        return PersistOutcome.SAVED

    def delete_matching(self, query) -> int:
        """删除满足条件的所有行"""
        where, params = self._where(query)
        with self._lock:
            with self._get_connection() as conn:
                cursor = self._execute(
                    conn, f"DELETE FROM {self._q(self.table)}{where}", params, "delete"
                )
                return cursor.rowcount

    def _execute(self, conn, sql: str, params: List[Any], operation: str):
        """执行语句，把驱动异常转换为存储异常"""
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageOperationError(str(e), operation=operation, store_type=self.store_type)

    # ========== 原子批次 ==========

    def begin(self) -> None:
        """开始原子批次（嵌套时只有最外层生效）"""
        with self._lock:
            if self._depth == 0:
                conn = self._connect()
                try:
                    if conn.in_transaction:
                        conn.commit()
                    conn.execute("BEGIN")
                except sqlite3.Error as e:
                    self._release(conn)
                    raise StorageOperationError(str(e), operation="begin", store_type=self.store_type)
                self._batch_conn = conn
            self._depth += 1

    def commit(self) -> None:
        """提交原子批次"""
        with self._lock:
            if self._depth == 0:
                return
            self._depth -= 1
            if self._depth == 0:
                conn, self._batch_conn = self._batch_conn, None
                try:
                    conn.commit()
                except sqlite3.Error as e:
                    conn.rollback()
                    raise StorageOperationError(str(e), operation="commit", store_type=self.store_type)
                finally:
                    self._release(conn)

    def rollback(self) -> None:
        """回滚原子批次"""
        with self._lock:
            if self._depth == 0:
                return
            conn, self._batch_conn = self._batch_conn, None
            self._depth = 0
            try:
                conn.rollback()
            finally:
                self._release(conn)

    # ========== 维护 ==========

    def close(self):
        """关闭数据库连接"""
        with self._lock:
            if self._shared_conn is not None:
                self._shared_conn.close()
                self._shared_conn = None

    def clear(self):
        """清空所有数据（测试用）"""
        with self._lock:
            with self._get_connection() as conn:
                conn.execute(f"DELETE FROM {self._q(self.table)}")

    def backup(self, backup_path: str):
        """创建数据库备份"""
        with self._lock:
            target = sqlite3.connect(backup_path)
            try:
                with self._get_connection() as conn:
                    conn.backup(target)
            finally:
                target.close()

    def __str__(self):
        """字符串表示"""
        return f"SQLiteStore(db={self.db_path}, table={self.table})"
