"""
SWC 目录 (catalog.xml) 模型

读取和修改目录中的库摘要记录。目录结构:

    <swc xmlns="http://www.adobe.com/flash/swccatalog/9">
      <libraries>
        <library path="library.swf">
          <digests>
            <digest type="SHA-256" signed="false" value="..."/>
          </digests>
        </library>
      </libraries>
      <files>
        <file path="..." mod="..."/>
      </files>
    </swc>
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .container import LIBRARY_SWF

SWC_NAMESPACE = "http://www.adobe.com/flash/swccatalog/9"
DIGEST_ALGORITHM = "SHA-256"


class CatalogError(Exception):
    """目录解析或修改错误"""
    pass


@dataclass(frozen=True)
class DigestRecord:
    """摘要记录"""
    algorithm: str
    signed: bool
    value: bytes

    @property
    def hexdigest(self) -> str:
        return self.value.hex()

    @classmethod
    def from_element(cls, element: ET.Element) -> 'DigestRecord':
        try:
            value = bytes.fromhex(element.get('value', ''))
        except ValueError as e:
            raise CatalogError(f"摘要值不是十六进制: {element.get('value')!r}") from e
        return cls(
            algorithm=element.get('type', DIGEST_ALGORITHM),
            signed=element.get('signed', 'false').lower() == 'true',
            value=value,
        )


@dataclass(frozen=True)
class ArchiveCatalogEntry:
    """归档目录中的一个库条目及其摘要"""
    archive_path: Path
    key: str
    digest: Optional[DigestRecord]


class SwcCatalog:
    """catalog.xml 的可修改视图

    只修改目标库的摘要元素，其余元素、属性顺序和空白保持原样。
    """

    def __init__(self, root: ET.Element):
        self.root = root
        if root.tag.startswith('{'):
            self.namespace = root.tag[1:].split('}', 1)[0]
        else:
            self.namespace = ''

    @classmethod
    def parse(cls, data: bytes) -> 'SwcCatalog':
        # 保留注释和处理指令，重新导出时不丢失
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
        try:
            parser.feed(data)
            root = parser.close()
        except ET.ParseError as e:
            raise CatalogError(f"catalog.xml 解析失败: {e}") from e
        return cls(root)

    def _tag(self, name: str) -> str:
        return f"{{{self.namespace}}}{name}" if self.namespace else name

    def _find_library(self, library_path: str) -> Optional[ET.Element]:
        libraries = self.root.find(self._tag('libraries'))
        if libraries is None:
            return None
        for library in libraries.findall(self._tag('library')):
            if library.get('path') == library_path:
                return library
        return None

    def library_paths(self) -> List[str]:
        """列出目录中所有库的路径"""
        libraries = self.root.find(self._tag('libraries'))
        if libraries is None:
            return []
        return [lib.get('path', '') for lib in libraries.findall(self._tag('library'))]

    def file_paths(self) -> List[str]:
        """列出目录中登记的归档文件"""
        files = self.root.find(self._tag('files'))
        if files is None:
            return []
        return [f.get('path', '') for f in files.findall(self._tag('file'))]

    def get_digests(self, library_path: str = LIBRARY_SWF) -> List[DigestRecord]:
        library = self._find_library(library_path)
        if library is None:
            raise CatalogError(f"目录中不存在库 {library_path}")
        digests = library.find(self._tag('digests'))
        if digests is None:
            return []
        return [DigestRecord.from_element(d) for d in digests.findall(self._tag('digest'))]

    def get_digest(
        self,
        library_path: str = LIBRARY_SWF,
        signed: bool = False,
        algorithm: str = DIGEST_ALGORITHM,
    ) -> Optional[DigestRecord]:
        for record in self.get_digests(library_path):
            if record.signed == signed and record.algorithm == algorithm:
                return record
        return None

    def set_digest(self, library_path: str, record: DigestRecord) -> None:
        """替换库中同算法、同签名模式的摘要，不存在时追加

        Raises:
            CatalogError: 目录中没有该库
        """
        library = self._find_library(library_path)
        if library is None:
            raise CatalogError(f"目录中不存在库 {library_path}")

        digests = library.find(self._tag('digests'))
        if digests is None:
            digests = ET.SubElement(library, self._tag('digests'))

        signed_text = 'true' if record.signed else 'false'
        for element in digests.findall(self._tag('digest')):
            if (element.get('type') == record.algorithm
                    and element.get('signed', 'false').lower() == signed_text):
                element.set('value', record.hexdigest)
                return

        element = ET.SubElement(digests, self._tag('digest'))
        element.set('type', record.algorithm)
        element.set('signed', signed_text)
        element.set('value', record.hexdigest)

    def to_bytes(self) -> bytes:
        """序列化为 UTF-8 XML，目录命名空间写成默认命名空间"""
        if self.namespace:
            ET.register_namespace('', self.namespace)
        try:
            return ET.tostring(self.root, encoding='utf-8', xml_declaration=True)
        except (TypeError, ValueError) as e:
            raise CatalogError(f"catalog.xml 序列化失败: {e}") from e
