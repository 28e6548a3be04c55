"""
单元测试公共夹具

提供示例项目目录、SWC 归档生成器以及假的编译器/优化器。
"""

import hashlib
import zipfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from swcpack.build.archive_builder import ArchiveSpec
from swcpack.config.schema import SwcpackConfig

CATALOG_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<swc xmlns="http://www.adobe.com/flash/swccatalog/9">
  <versions>
    <swc version="1.2"/>
  </versions>
  <libraries>
    <library path="library.swf">
      <script name="com/example/Widget" mod="1200000000000"/>
      <digests>
        <digest type="SHA-256" signed="false" value="{unsigned}"/>
        <digest type="SHA-256" signed="true" value="{signed}"/>
      </digests>
    </library>
  </libraries>
  <files>
    <file path="assets/logo.png" mod="1200000000000"/>
  </files>
</swc>
"""

LIBRARY_IMAGE = b"FWS\x0a" + bytes(range(256)) * 4
EXTRA_ENTRIES = {
    "assets/logo.png": b"\x89PNG\r\n\x1a\nfake-png",
    "maven/com.example/widgets/pom.xml": b"<project/>",
}


def catalog_xml(unsigned: str = "00" * 32, signed: str = "11" * 32) -> bytes:
    return CATALOG_TEMPLATE.format(unsigned=unsigned, signed=signed).encode('utf-8')


def write_swc(
    path: Path,
    image: Optional[bytes] = LIBRARY_IMAGE,
    catalog: Optional[bytes] = None,
    extra: Optional[Dict[str, bytes]] = None,
) -> Path:
    """写出一个最小的 SWC 归档：catalog.xml + library.swf + 附加条目"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("catalog.xml", catalog if catalog is not None else catalog_xml())
        if image is not None:
            zf.writestr("library.swf", image)
        for name, data in (EXTRA_ENTRIES if extra is None else extra).items():
            zf.writestr(name, data)
        zf.comment = b"swcpack-test"
    return path


def reverse_optimizer(data: bytes) -> bytes:
    """确定性的假优化器：字节反转"""
    return data[::-1]


class FakeCompiler:
    """记录收到的编译请求，并生成一个最小的 SWC"""

    def __init__(self):
        self.specs: List[ArchiveSpec] = []

    def build(self, spec: ArchiveSpec) -> Path:
        self.specs.append(spec)
        image = hashlib.sha256(spec.output.name.encode('utf-8')).digest() * 8
        return write_swc(spec.output, image=image)

    def spec_for(self, output_name: str) -> ArchiveSpec:
        for spec in self.specs:
            if spec.output.name == output_name:
                return spec
        raise KeyError(output_name)


@pytest.fixture
def project_dir(tmp_path):
    """示例项目目录结构"""
    base = tmp_path / "project"
    (base / "src/main/flex/com/example").mkdir(parents=True)
    (base / "src/main/flex/com/example/Widget.as").write_text("package com.example {}", encoding='utf-8')

    resources = base / "src/main/resources"
    (resources / "assets").mkdir(parents=True)
    (resources / "assets/logo.png").write_bytes(b"png")
    (resources / "defaults.css").write_text("Button {}", encoding='utf-8')
    (resources / ".hidden").write_text("x", encoding='utf-8')

    for locale, bundles in {"en_US": ["Foo", "Bar"], "pt_BR": ["Foo"]}.items():
        locale_dir = base / "src/main/locales" / locale
        locale_dir.mkdir(parents=True)
        for bundle in bundles:
            (locale_dir / f"{bundle}.properties").write_text("key=value", encoding='utf-8')

    (base / "pom.xml").write_text("<project/>", encoding='utf-8')
    return base


@pytest.fixture
def make_config(project_dir):
    """根据覆盖项创建配置"""

    def factory(**sections) -> SwcpackConfig:
        data = {
            "project": {
                "group_id": "com.example",
                "artifact_id": "widgets",
                "version": "1.0.0",
                "base_dir": str(project_dir),
            },
        }
        for key, value in sections.items():
            if key == "project":
                data["project"].update(value)
            else:
                data[key] = value
        return SwcpackConfig.from_dict(data)

    return factory


@pytest.fixture
def fake_compiler():
    return FakeCompiler()
