"""
直接调用示例：Excel大纲 → 嵌套集树
"""
import sys
from pathlib import Path

# 添加src到路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from nested_tree import NestedTreeSystem
from nested_tree.services.import_export import OutlineImporter, DumpExporter, DataImportError


def import_excel_to_tree(excel_file: str, output_format: str = 'memory', indent: int = 2):
    """
    导入Excel大纲并创建树

    Args:
        excel_file: Excel文件路径
        output_format: 存储后端 ('memory', 'json', 'sqlite')
        indent: 每级缩进的空格数

    Returns:
        节点仓库
    """
    print("=" * 80)
    print("Excel → 嵌套集树导入工具")
    print("=" * 80)

    # 1. 创建系统
    config = {"system_name": "outline", "storage_backend": output_format}
    if output_format != 'memory':
        suffix = 'json' if output_format == 'json' else 'db'
        config["storage_path"] = str(Path("output") / f"outline.{suffix}")
    system = NestedTreeSystem(config)
    repo = system.register_node_type("outline", {"title_field": "name", "tree_field": "tree_id"})
    print(f"✅ 使用{output_format}存储")

    # 2. 导入
    importer = OutlineImporter(repo, {"indent": indent})
    roots = importer.import_data(excel_file)
    print(f"✅ 导入完成: {importer.stats}")

    # 3. 汇总
    exporter = DumpExporter(repo, indent=indent)
    for root in roots:
        summary = exporter.summary(root)
        print(f"   树 {root.tree_id} ({root.title}): {summary['nodes']} 个节点, 各层级 {summary['levels']}")

    return repo


def main():
    """命令行入口"""
    import argparse

    parser = argparse.ArgumentParser(description='导入Excel大纲到嵌套集树')
    parser.add_argument('excel_file', help='Excel文件路径')
    parser.add_argument('--output', choices=['memory', 'json', 'sqlite'],
                        default='memory', help='存储后端')
    parser.add_argument('--indent', type=int, default=2, help='每级缩进的空格数')

    args = parser.parse_args()

    try:
        import_excel_to_tree(args.excel_file, args.output, args.indent)
    except DataImportError as e:
        print(f"❌ 导入失败: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
