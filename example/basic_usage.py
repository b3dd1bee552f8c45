"""
嵌套集树基本使用示例
"""
import sys
import os

# 添加src到路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from nested_tree import NestedTreeSystem


def main():
    """主函数"""
    print("=" * 60)
    print("嵌套集树 - 基本使用示例")
    print("=" * 60)

    # 1. 创建系统实例
    print("\n1. 初始化系统...")
    system = NestedTreeSystem({
        "system_name": "shop",
        "storage_backend": "memory",
        "log_level": "WARNING"
    })

    # 2. 注册节点类型
    print("\n2. 注册节点类型...")
    categories = system.register_node_type("category", {"title_field": "name"})
    print(f"   {categories}")

    # 3. 构建树结构
    print("\n3. 构建树结构...")
    root = categories.new_root(categories.create("全部商品"))
    books = categories.insert_as_last_child_of(categories.create("图书"), root)
    electronics = categories.insert_as_last_child_of(categories.create("电子产品"), categories.refresh(root))
    for title in ["小说", "历史", "科普"]:
        categories.insert_as_last_child_of(categories.create(title), books)
    # 插入其他节点后需要刷新索引
    phone = categories.insert_as_first_child_of(categories.create("手机", brand="多品牌"),
                                                categories.refresh(electronics))
    print(f"   根节点: {categories.refresh(root)}")

    # 4. 导航
    print("\n4. 导航...")
    print(f"   手机的父节点: {categories.get_parent(phone).title}")
    print(f"   手机的深度: {categories.depth(phone)}")
    print(f"   图书的子节点: {[c.title for c in categories.get_children(categories.refresh(books))]}")

    # 5. 移动子树
    print("\n5. 把科普移动到电子产品下...")
    science = categories.get_last_child(categories.refresh(books))
    categories.make_first_child_of(science, categories.refresh(electronics))

    # 6. 导出子树
    print("\n6. 树结构:")
    for row in categories.dump(categories.get_root()):
        marker = "└─" if row["_last_"] else "├─"
        print(f"   {'   ' * row['_level_']}{marker} {row['name']}  ({row['_path_']})")

    # 7. 健康检查
    print("\n7. 健康检查:")
    health = system.health_check()
    print(f"   状态: {health['status']}")

    print("\n" + "=" * 60)
    print("示例完成!")
    print("=" * 60)


if __name__ == "__main__":
    main()
