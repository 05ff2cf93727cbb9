"""
Marker 변환: %field% / %#loop% ... %/loop% → docxtpl(Jinja2) 태그.

docxtpl은 {{ }} / {% %} 구문만 이해하므로 렌더 직전에 문서 XML을 변환한다.

- 문단 단위로 w:t 텍스트를 이어 붙여 marker를 찾는다 (run 분할 대응)
- 필드: {{ _value('name', <안쪽 scope>..., _root) }}
- 반복 시작/끝: {% for _sN in _items('name', ...) %} / {% endfor %}
  marker만 있는 문단 → {%p ... %}, marker만 있는 표 행 → {%tr ... %}
  같은 행의 다른 셀에서 열고 닫는 반복 → 행 앞뒤에 {%tr %} 행을 끼워 행 반복
- 여는 marker와 닫는 marker의 블록 종류가 다르면 RenderError(binding)
- 문서에 원래 있던 '{' 는 {{ '{' }} 로 바꿔 Jinja 구문과 섞이지 않게 한다
- 짝이 맞지 않는 반복 marker → RenderError(binding)
"""

import re
from collections.abc import Iterator, Mapping
from typing import Any, NamedTuple

from docx.oxml.ns import nsmap, qn
from lxml import etree

from src.domain.constants import IDENTIFIER_CHARS
from src.domain.errors import ErrorCodes, RenderError
from src.templates.analyzer import Marker, parse_marker

# %...% 또는 {#name} / {/name}
TOKEN = re.compile(
    rf"%(?P<inner>[^%\n]*)%|\{{[^\S\n]*(?P<prefix>[#/])(?P<name>{IDENTIFIER_CHARS})[^\S\n]*\}}"
)

ROOT_SCOPE = "_root"
LITERAL_BRACE = "{{ '{' }}"

W_P = qn("w:p")
W_R = qn("w:r")
W_T = qn("w:t")
W_TR = qn("w:tr")
W_TC = qn("w:tc")
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"


# =============================================================================
# Context helpers (Jinja 전역으로 전달)
# =============================================================================


def _lookup(name: str, scopes: tuple[Mapping[str, Any], ...]) -> tuple[bool, Any]:
    for scope in scopes:
        if isinstance(scope, Mapping) and name in scope:
            return True, scope[name]
    return False, None


def resolve_value(name: str, *scopes: Mapping[str, Any]) -> str:
    """
    필드 값 조회 (안쪽 scope 우선). 없거나 None이면 빈 문자열.

    Raises:
        RenderError: 필드 자리에 리스트/객체 값
    """
    found, value = _lookup(name, scopes)
    if not found or value is None:
        return ""
    if isinstance(value, (list, tuple, dict)):
        raise RenderError(
            ErrorCodes.LOOP_SHAPE_MISMATCH,
            RenderError.BINDING,
            field=name,
            error=f"field '{name}' received a {type(value).__name__}, expected a scalar",
        )
    return str(value)


def resolve_items(name: str, *scopes: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """
    반복 그룹 값 조회.

    - 리스트 → 원소(객체)마다 1회
    - 객체 → 1회 (해당 객체가 scope)
    - 그 외 truthy 값 → 1회 (바깥 scope 사용)
    - 없음/빈 값 → 0회

    Raises:
        RenderError: 리스트 원소가 객체가 아님
    """
    found, value = _lookup(name, scopes)
    if not found or not value:
        return []
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            if not isinstance(item, Mapping):
                raise RenderError(
                    ErrorCodes.LOOP_SHAPE_MISMATCH,
                    RenderError.BINDING,
                    loop=name,
                    index=index,
                    error=f"loop '{name}' item #{index} is a {type(item).__name__}, expected an object",
                )
        return list(value)
    return [{}]


def build_render_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """docxtpl.render()에 넘길 컨텍스트."""
    return {
        ROOT_SCOPE: dict(context),
        "_value": resolve_value,
        "_items": resolve_items,
    }


# =============================================================================
# XML Translation
# =============================================================================


def _nearest(element: Any, tag: str) -> Any:
    parent = element.getparent()
    while parent is not None and parent.tag != tag:
        parent = parent.getparent()
    return parent


def _own_text_nodes(paragraph: Any) -> list[Any]:
    """중첩 문단(텍스트 상자)의 w:t는 제외."""
    return [t for t in paragraph.iter(W_T) if _nearest(t, W_P) is paragraph]


def _text_of(element: Any) -> str:
    return "".join(t.text or "" for t in element.iter(W_T))


class _OpenLoop(NamedTuple):
    """열린 반복 그룹: 이름, 블록 종류, 여는 marker가 있는 표 행."""
    name: str
    block: str  # "", "p", "tr", "row"
    row: Any


def _markers(text: str) -> Iterator[tuple[re.Match[str], Marker]]:
    """텍스트의 marker (식별자가 아닌 %...% 는 건너뜀)."""
    for match in TOKEN.finditer(text):
        if match.group("inner") is not None:
            marker = parse_marker(match.group("inner"))
        else:
            kind = "open" if match.group("prefix") == "#" else "close"
            marker = Marker(kind, match.group("name"))
        if marker is not None:
            yield match, marker


def _tag_row(tag: str) -> Any:
    """docxtpl이 {%tr %} 태그로 치환할 행 1개 (w:tr/w:tc/w:p/w:r/w:t)."""
    new_row = etree.Element(W_TR, nsmap={"w": nsmap["w"]})
    run = etree.SubElement(etree.SubElement(etree.SubElement(new_row, W_TC), W_P), W_R)
    etree.SubElement(run, W_T).text = tag
    return new_row


class MarkerTranslator:
    """
    XML 파트 1개 변환기. 파트마다 새 인스턴스 (loop 스택이 파트 단위).

    블록 종류는 여는 marker에서 한 번 정하고 닫는 marker에도 같은 종류를 쓴다.
    - "p": marker만 있는 문단
    - "tr": marker만 있는 표 행
    - "row": 같은 행의 서로 다른 셀에서 열고 닫음 → 행 반복
    - "": 문장 안 (inline)

    Usage:
        xml = MarkerTranslator().translate(src_xml)
    """

    def __init__(self) -> None:
        self._stack: list[_OpenLoop] = []

    def _scopes(self) -> str:
        inner = [f"_s{depth}" for depth in range(len(self._stack), 0, -1)]
        return ", ".join([*inner, ROOT_SCOPE])

    def _block_scope(self, paragraph: Any, token: str) -> str:
        """marker만 있는 문단/표 행이면 'p' / 'tr', 아니면 ''."""
        if _text_of(paragraph).strip() != token.strip():
            return ""
        row = _nearest(paragraph, W_TR)
        if row is not None and _text_of(row).strip() == token.strip():
            return "tr"
        cell = _nearest(paragraph, W_TC)
        if cell is not None and len(cell.findall(W_P)) == 1:
            # 셀의 유일한 문단은 지우면 안 됨
            return ""
        return "p"

    @staticmethod
    def _closes_in_other_cell(paragraph: Any, row: Any, name: str) -> bool:
        """같은 행의 다른 셀에 name의 닫는 marker가 있는지."""
        cell = _nearest(paragraph, W_TC)
        for other in row.iter(W_P):
            if _nearest(other, W_TC) is cell or _nearest(other, W_TR) is not row:
                continue
            text = "".join(node.text or "" for node in _own_text_nodes(other))
            if any(m.kind == "close" and m.name == name for _, m in _markers(text)):
                return True
        return False

    @staticmethod
    def _unbalanced(name: str, error: str) -> RenderError:
        return RenderError(ErrorCodes.LOOP_UNBALANCED, RenderError.BINDING, loop=name, error=error)

    def _open(self, marker: Marker, paragraph: Any, token: str) -> str:
        scopes = self._scopes()
        block = self._block_scope(paragraph, token)
        row = _nearest(paragraph, W_TR)
        if block != "tr" and row is not None and self._closes_in_other_cell(paragraph, row, marker.name):
            block = "row"

        self._stack.append(_OpenLoop(marker.name, block, row))
        tag = f"for _s{len(self._stack)} in _items('{marker.name}', {scopes})"

        if block == "row":
            row.addprevious(_tag_row(f"{{%tr {tag} %}}"))
            return ""
        return f"{{%{block} {tag} %}}"

    def _close(self, marker: Marker, paragraph: Any, token: str) -> str:
        if not self._stack:
            raise self._unbalanced(
                marker.name, f"closing marker for '{marker.name}' without an opening marker"
            )
        opened = self._stack[-1]
        if opened.name != marker.name:
            raise self._unbalanced(
                marker.name, f"closing marker for '{marker.name}' while '{opened.name}' is open"
            )

        if opened.block == "row":
            if _nearest(paragraph, W_TR) is not opened.row:
                raise self._unbalanced(
                    marker.name, f"loop '{marker.name}' opens inside a table row but closes outside it"
                )
            self._stack.pop()
            opened.row.addnext(_tag_row("{%tr endfor %}"))
            return ""

        block = self._block_scope(paragraph, token)
        if block != opened.block:
            raise self._unbalanced(
                marker.name,
                f"loop '{marker.name}' opens as {opened.block or 'inline'} "
                f"but closes as {block or 'inline'}",
            )
        self._stack.pop()
        return f"{{%{block} endfor %}}"

    def _translate_marker(self, marker: Marker, paragraph: Any, token: str) -> str:
        if marker.kind == "field":
            return f"{{{{ _value('{marker.name}', {self._scopes()}) }}}}"
        if marker.kind == "open":
            return self._open(marker, paragraph, token)
        return self._close(marker, paragraph, token)

    def _replacements(self, paragraph: Any, text: str) -> Iterator[tuple[int, int, str]]:
        """(start, end, 새 텍스트) 목록, 원래 텍스트 순서대로."""
        position = 0
        for match, marker in _markers(text):
            yield from self._escape_braces(text, position, match.start())
            yield match.start(), match.end(), self._translate_marker(marker, paragraph, match.group(0))
            position = match.end()

        yield from self._escape_braces(text, position, len(text))

    @staticmethod
    def _escape_braces(text: str, start: int, end: int) -> Iterator[tuple[int, int, str]]:
        for offset in range(start, end):
            if text[offset] == "{":
                yield offset, offset + 1, LITERAL_BRACE

    @staticmethod
    def _apply(nodes: list[Any], replacements: list[tuple[int, int, str]]) -> None:
        """텍스트 오프셋 기준 치환을 w:t 노드들에 반영 (뒤에서부터)."""
        texts = [node.text or "" for node in nodes]
        bounds = []
        cursor = 0
        for value in texts:
            bounds.append((cursor, cursor + len(value)))
            cursor += len(value)

        # 앞쪽 치환의 오프셋이 바뀌지 않도록 뒤에서부터 적용
        for start, end, new_text in reversed(replacements):
            first = True
            for index, (lo, hi) in enumerate(bounds):
                if hi <= start:
                    continue
                if lo >= end:
                    break
                local_start = max(start - lo, 0)
                local_end = min(end - lo, hi - lo)
                inserted = new_text if first else ""
                texts[index] = texts[index][:local_start] + inserted + texts[index][local_end:]
                first = False

        for node, value in zip(nodes, texts, strict=True):
            if value == (node.text or ""):
                continue
            node.text = value
            node.set(XML_SPACE, "preserve")

    def translate_tree(self, root: Any) -> None:
        """lxml 트리 제자리 변환."""
        for paragraph in list(root.iter(W_P)):
            nodes = _own_text_nodes(paragraph)
            if not nodes:
                continue
            text = "".join(node.text or "" for node in nodes)
            replacements = list(self._replacements(paragraph, text))
            if replacements:
                self._apply(nodes, replacements)

        if self._stack:
            raise RenderError(
                ErrorCodes.LOOP_UNBALANCED,
                RenderError.BINDING,
                loop=self._stack[-1].name,
                error=f"loop '{self._stack[-1].name}' is never closed",
            )

    def translate(self, src_xml: str) -> str:
        """XML 문자열 변환."""
        root = etree.fromstring(src_xml)
        self.translate_tree(root)
        return etree.tostring(root, encoding="unicode")
