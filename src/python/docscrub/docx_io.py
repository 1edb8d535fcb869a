from typing import Dict, Iterator, List, Optional, Tuple

from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import parse_xml
from docx.oxml.ns import qn
from lxml import etree

from .config import ContainerKind, ProcessingOptions
from .splice import Fragment

CUSTOM_PROPERTIES_PARTNAME = "/docProps/custom.xml"
VT_NS = "http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes"
# Only textual variant types are searched; numbers, dates and booleans are left alone
VT_TEXT_TAGS = {f"{{{VT_NS}}}{name}" for name in ("lpwstr", "lpstr", "bstr")}

# Core properties blanked when properties are processed
CORE_PROPERTY_FIELDS = (
    "author",
    "title",
    "subject",
    "keywords",
    "comments",
    "last_modified_by",
    "category",
)

_PART_KINDS = (
    (RT.HEADER, ContainerKind.HEADER),
    (RT.FOOTER, ContainerKind.FOOTER),
    (RT.FOOTNOTES, ContainerKind.NOTE),
    (RT.ENDNOTES, ContainerKind.NOTE),
    (RT.COMMENTS, ContainerKind.NOTE),
)

_RPR = qn("w:rPr")


class RunTextFragment(Fragment):
    """One w:t element of a paragraph."""

    def __init__(self, element):
        self.element = element

    def get_content(self) -> str:
        return self.element.text or ""

    def set_content(self, text: str) -> None:
        self.element.text = text
        # Keep leading/trailing spaces the splice may expose
        self.element.set(qn("xml:space"), "preserve")

    def remove_owning_unit(self) -> None:
        run = next(self.element.iterancestors(qn("w:r")), None)
        target = self.element
        # Drop the whole run only when it holds nothing but this text
        if run is not None and all(child is self.element or child.tag == _RPR for child in run):
            target = run
        parent = target.getparent()
        if parent is not None:
            parent.remove(target)
        else:
            self.element.text = ""
        self.removed = True

    def __repr__(self):
        return f"RunTextFragment({self.get_content()!r})"


class PropertyFragment(Fragment):
    """Text value of a custom document property."""

    def __init__(self, element, name: str = ""):
        self.element = element
        self.name = name

    def get_content(self) -> str:
        return self.element.text or ""

    def set_content(self, text: str) -> None:
        self.element.text = text

    def remove_owning_unit(self) -> None:
        # The property itself stays; an empty value keeps custom.xml valid
        self.element.text = ""
        self.removed = True

    def __repr__(self):
        return f"PropertyFragment({self.name!r}, {self.get_content()!r})"


def _inside_text_box(paragraph) -> bool:
    return next(paragraph.iterancestors(qn("w:txbxContent")), None) is not None


def paragraph_fragments(paragraph) -> List[RunTextFragment]:
    """w:t elements that belong to `paragraph` itself, in document order."""
    out = []
    for t in paragraph.iter(qn("w:t")):
        owner = next(t.iterancestors(qn("w:p")), None)
        if owner is paragraph:
            out.append(RunTextFragment(t))
    return out


class DocxDocument:
    """
    Container enumeration and persistence for a python-docx Document.

    Parts python-docx only exposes as blobs (footnotes in some versions, custom
    properties) are parsed once, edited in place and written back in save().
    """

    def __init__(self, doc: Document):
        self.doc = doc
        self.detached_parts = []
        self._roots: Dict[str, object] = {}

    @staticmethod
    def load(path: str) -> "DocxDocument":
        return DocxDocument(Document(path))

    def save(self, path: str) -> None:
        for part, root in self.detached_parts:
            part._blob = etree.tostring(root, encoding="UTF-8", xml_declaration=True, standalone=True)
        self.doc.save(path)

    def _part_root(self, part):
        key = str(part.partname)
        if key in self._roots:
            return self._roots[key]
        root = getattr(part, "element", None)
        if root is None:
            root = parse_xml(part.blob)
            self.detached_parts.append((part, root))
        self._roots[key] = root
        return root

    def _iter_roots(self) -> Iterator[Tuple[str, object]]:
        yield ContainerKind.CONTENT, self.doc.element.body
        seen = set()
        for reltype, kind in _PART_KINDS:
            for rel in self.doc.part.rels.values():
                if rel.is_external or rel.reltype != reltype:
                    continue
                part = rel.target_part
                if str(part.partname) in seen:
                    continue
                seen.add(str(part.partname))
                yield kind, self._part_root(part)

    def _custom_properties_root(self):
        for part in self.doc.part.package.iter_parts():
            if str(part.partname) == CUSTOM_PROPERTIES_PARTNAME:
                return self._part_root(part)
        return None

    def custom_property_fragments(self) -> List[PropertyFragment]:
        root = self._custom_properties_root()
        if root is None:
            return []
        out = []
        for prop in root:
            for value in prop:
                if value.tag in VT_TEXT_TAGS:
                    out.append(PropertyFragment(value, name=prop.get("name", "")))
        return out

    def enumerate_containers(self, options: Optional[ProcessingOptions] = None) -> Iterator[Tuple[str, List[Fragment]]]:
        """Yield (kind, fragments) for every paragraph and custom property the options allow."""
        kinds = set((options or ProcessingOptions()).enabled_kinds())
        for kind, root in self._iter_roots():
            if kind not in kinds:
                continue
            for p in list(root.iter(qn("w:p"))):
                p_kind = ContainerKind.TEXTBOX if _inside_text_box(p) else kind
                if p_kind not in kinds:
                    continue
                fragments = paragraph_fragments(p)
                if fragments:
                    yield p_kind, fragments
        if ContainerKind.PROPERTY in kinds:
            for fragment in self.custom_property_fragments():
                yield ContainerKind.PROPERTY, [fragment]

    def clear_core_properties(self) -> int:
        """Blank identifying core properties; returns how many held a value."""
        props = self.doc.core_properties
        cleared = 0
        for name in CORE_PROPERTY_FIELDS:
            if getattr(props, name):
                setattr(props, name, "")
                cleared += 1
        return cleared

    @property
    def text(self) -> str:
        """Logical text of every paragraph, one per line (for inspection and tests)."""
        lines = []
        for _, fragments in self.enumerate_containers(ProcessingOptions(process_properties=False)):
            lines.append("".join(f.get_content() for f in fragments))
        return "\n".join(lines)
