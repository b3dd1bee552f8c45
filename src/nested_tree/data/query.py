"""
查询对象
节点查询由若干谓词（AND组合）、分区范围和排序组成，
由查询规划器生成，由存储适配器执行
"""
import operator
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from ..interfaces.iquery import IQuery

# 支持的比较运算符
OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    '=': operator.eq,
    '<': operator.lt,
    '<=': operator.le,
    '>': operator.gt,
    '>=': operator.ge,
}


@dataclass(frozen=True)
class Predicate:
    """单个比较谓词: field op value"""

    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPERATORS:
            raise ValueError(f"不支持的运算符: {self.op}")

    def matches(self, row: Dict[str, Any]) -> bool:
        """判断行数据是否满足谓词"""
        current = row.get(self.field)
        if current is None:
            return False
        return OPERATORS[self.op](current, self.value)


@dataclass(frozen=True)
class NodeQuery(IQuery):
    """
    节点查询

    Attributes:
        partition: (树ID字段名, 树ID)，单树存储为None
        predicates: AND组合的谓词
        order_by: 排序字段
        descending: 是否降序
        limit: 最大结果数
    """

    partition: Optional[Tuple[str, Any]] = None
    predicates: Tuple[Predicate, ...] = field(default_factory=tuple)
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None

    def all_predicates(self) -> Tuple[Predicate, ...]:
        """包含分区条件在内的全部谓词"""
        if self.partition is None:
            return self.predicates
        tree_field, tree_id = self.partition
        return (Predicate(tree_field, '=', tree_id),) + self.predicates

    def matches(self, row: Dict[str, Any]) -> bool:
        """判断行数据是否满足所有条件"""
        return all(p.matches(row) for p in self.all_predicates())

    def where(self, field_name: str, op: str, value: Any) -> 'NodeQuery':
        """追加一个谓词，返回新的查询对象"""
        return NodeQuery(
            partition=self.partition,
            predicates=self.predicates + (Predicate(field_name, op, value),),
            order_by=self.order_by,
            descending=self.descending,
            limit=self.limit
        )

    def ordered(self, order_by: str, descending: bool = False) -> 'NodeQuery':
        """设置排序，返回新的查询对象"""
        return NodeQuery(
            partition=self.partition,
            predicates=self.predicates,
            order_by=order_by,
            descending=descending,
            limit=self.limit
        )

    def first(self) -> 'NodeQuery':
        """只取第一条"""
        return NodeQuery(
            partition=self.partition,
            predicates=self.predicates,
            order_by=self.order_by,
            descending=self.descending,
            limit=1
        )

    def validate(self) -> bool:
        """验证查询是否有效"""
        if self.limit is not None and self.limit <= 0:
            return False
        return all(p.op in OPERATORS for p in self.predicates)

    def describe(self) -> str:
        """可读的查询描述，用于日志"""
        parts = [f"{p.field} {p.op} {p.value}" for p in self.all_predicates()]
        text = " AND ".join(parts) or "ALL"
        if self.order_by:
            text += f" ORDER BY {self.order_by} {'DESC' if self.descending else 'ASC'}"
        if self.limit:
            text += f" LIMIT {self.limit}"
        return text
