"""
路径解析单元测试

测试根目录优先级、字符串前缀匹配和库内名称计算。
"""

from pathlib import Path

from swcpack.build.path_resolver import PathResolver


def make_resolver(base: Path, sources=(), compile_roots=(), resources=(), execution_roots=None) -> PathResolver:
    return PathResolver(
        source_paths=list(sources),
        compile_source_roots=list(compile_roots),
        resources=list(resources),
        base_dir=base,
        execution_source_roots=execution_roots,
    )


class TestResolve:
    """resolve 测试"""

    def test_first_match_wins(self, tmp_path):
        """列表内按顺序取第一个前缀匹配，而不是最长匹配"""
        outer = tmp_path / "a"
        inner = tmp_path / "a" / "b"
        resolver = make_resolver(tmp_path, sources=[outer, inner])
        assert resolver.resolve(inner / "c.txt") == outer

        reversed_resolver = make_resolver(tmp_path, sources=[inner, outer])
        assert reversed_resolver.resolve(inner / "c.txt") == inner

    def test_source_paths_before_resources(self, tmp_path):
        shared = tmp_path / "shared"
        resolver = make_resolver(tmp_path, sources=[shared], resources=[shared / "res"])
        assert resolver.resolve(shared / "res" / "x.png") == shared

    def test_execution_roots_override_compile_roots(self, tmp_path):
        declared = tmp_path / "declared"
        override = tmp_path / "override"
        resolver = make_resolver(tmp_path, compile_roots=[declared], execution_roots=[override])

        assert resolver.resolve(override / "x.as") == override
        assert resolver.resolve(declared / "x.as") == tmp_path

    def test_empty_execution_roots_still_override(self, tmp_path):
        declared = tmp_path / "declared"
        resolver = make_resolver(tmp_path, compile_roots=[declared], execution_roots=[])
        assert resolver.resolve(declared / "x.as") == tmp_path

    def test_falls_back_to_base_dir(self, tmp_path):
        resolver = make_resolver(tmp_path, sources=[tmp_path / "src"])
        assert resolver.resolve(Path("/elsewhere/file.txt")) == tmp_path


class TestArchiveName:
    """archive_name 测试"""

    def test_relative_to_resource_root(self, tmp_path):
        resources = tmp_path / "res"
        resolver = make_resolver(tmp_path, resources=[resources])
        assert resolver.archive_name(resources / "assets" / "logo.png") == "assets/logo.png"

    def test_relative_to_base_dir(self, tmp_path):
        resolver = make_resolver(tmp_path)
        assert resolver.archive_name(tmp_path / "docs" / "readme.txt") == "docs/readme.txt"

    def test_outside_project_uses_base_name(self, tmp_path):
        project = tmp_path / "project"
        resolver = make_resolver(project)
        assert resolver.archive_name(tmp_path / "other" / "license.txt") == "license.txt"

    def test_string_prefix_sibling_uses_base_name(self, tmp_path):
        """src 是 src2 的字符串前缀，相对路径越界时只保留文件名"""
        src = tmp_path / "src"
        resolver = make_resolver(tmp_path, sources=[src])
        assert resolver.resolve(tmp_path / "src2" / "file.txt") == src
        assert resolver.archive_name(tmp_path / "src2" / "file.txt") == "file.txt"
