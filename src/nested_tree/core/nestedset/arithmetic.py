"""
索引运算
只根据节点的 (left, right, tree_id) 计算关系，不做任何I/O
"""
from numbers import Number
from typing import Any, Optional

from nested_tree.config.tree_config import TreeConfig
from nested_tree.interfaces.inode import INestedNode
from ...exceptions import InvalidOperandError, InvariantViolation


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool) and value > 0


def is_valid(node: INestedNode, config: Optional[TreeConfig] = None) -> bool:
    """
    检查节点是否是有效的树节点

    未保存、索引缺失或非正数、left >= right、
    多棵树模式下树ID缺失或非正数，都视为无效
    """
    if not isinstance(node, INestedNode) or node.is_new():
        return False
    if not _is_positive_number(node.left) or not _is_positive_number(node.right):
        return False
    if node.left >= node.right:
        return False
    if config is not None and config.multi_tree and not _is_positive_number(node.tree_id):
        return False
    return True


def is_root(node: INestedNode, config: Optional[TreeConfig] = None) -> bool:
    """检查节点是否是树根"""
    return is_valid(node, config) and node.left == 1


def is_leaf(node: INestedNode, config: Optional[TreeConfig] = None) -> bool:
    """检查节点是否是叶子（没有子节点）"""
    return is_valid(node, config) and node.right - node.left == 1


def is_child(node: INestedNode, config: Optional[TreeConfig] = None) -> bool:
    """检查节点是否有父节点（不是树根）"""
    return is_valid(node, config) and not is_root(node, config)


def interval_size(node: INestedNode) -> int:
    """节点区间宽度，等于子树节点数的两倍"""
    return node.right - node.left + 1


def child_count(node: INestedNode, config: Optional[TreeConfig] = None) -> int:
    """
    返回区间内包含的节点数 (right - left - 1) / 2

    Raises:
        InvalidOperandError: 节点无效
        InvariantViolation: 结果不是非负整数，说明存储已损坏
    """
    if not is_valid(node, config):
        raise InvalidOperandError(
            "节点无效，无法计算子节点数",
            operation="child_count",
            node_id=getattr(node, 'node_id', None),
            reason="invalid_node"
        )

    width = node.right - node.left - 1
    if width < 0 or width % 2:
        raise InvariantViolation(
            f"子节点数不是非负整数: {width / 2}",
            node_id=node.node_id,
            value=width / 2
        )
    return width // 2


def same_partition(a: INestedNode, b: INestedNode, config: Optional[TreeConfig] = None) -> bool:
    """两个节点是否在同一分区"""
    if config is None or not config.multi_tree:
        return True
    return a.tree_id == b.tree_id


def require_same_partition(a: INestedNode, b: INestedNode,
                           config: Optional[TreeConfig] = None,
                           operation: str = "compare") -> None:
    """跨分区比较属于调用错误"""
    if not same_partition(a, b, config):
        raise InvalidOperandError(
            f"节点不在同一棵树中: {a.tree_id} != {b.tree_id}",
            operation=operation,
            node_id=a.node_id,
            reason="cross_partition"
        )


def is_child_of(node: INestedNode, ancestor: INestedNode,
                config: Optional[TreeConfig] = None) -> bool:
    """检查 node 是否是 ancestor 的后代（严格包含）"""
    if not (is_valid(node, config) and is_valid(ancestor, config)):
        return False
    require_same_partition(node, ancestor, config, "is_child_of")
    return node.left > ancestor.left and node.right < ancestor.right


def is_parent_of(node: INestedNode, descendant: INestedNode,
                 config: Optional[TreeConfig] = None) -> bool:
    """检查 node 是否是 descendant 的祖先"""
    return is_child_of(descendant, node, config)


def contains(node: INestedNode, other: INestedNode) -> bool:
    """other 是否是 node 本身或其后代"""
    return node.left <= other.left and other.right <= node.right
